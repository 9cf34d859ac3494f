"""State machine CLI tool.

This module provides a command-line interface for:
- Validating state machine configuration files
- Showing the states and transitions of a configuration
- Running a sequence of transitions against a fresh entity
"""

import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config.loader import ConfigLoader
from ..core.entity import StatefulObject
from ..exceptions import StateMachineError
from ..machine import StateMachine

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli():
    """State Machine CLI - declarative state machine tool"""
    pass


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='Show configuration details')
def validate(config_file: str, verbose: bool):
    """Validate a state machine configuration file"""
    loader = ConfigLoader()

    try:
        graph = loader.load_from_file(config_file)
    except (StateMachineError, OSError) as e:
        console.print(f"[red]Configuration is invalid: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print("[green]Configuration is valid![/green]")
    if verbose:
        console.print("\n[bold]Configuration Details:[/bold]")
        console.print(f"  Name: {graph.name or 'unnamed'}")
        console.print(f"  States: {len(graph.states)}")
        console.print(f"  Transitions: {len(graph.transitions)}")
        console.print(f"  Initial state: {graph.initial_state.name}")
        final_states = ", ".join(state.name for state in graph.final_states) or "none"
        console.print(f"  Final states: {final_states}")


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
def show(config_file: str):
    """Show the states and transitions of a configuration"""
    try:
        graph = ConfigLoader().load_from_file(config_file)
    except (StateMachineError, OSError) as e:
        console.print(f"[red]Error loading configuration: {escape(str(e))}[/red]")
        sys.exit(1)

    states_table = Table(title="States")
    states_table.add_column("Name", style="cyan")
    states_table.add_column("Type", style="magenta")
    for state in graph.states.values():
        states_table.add_row(state.name, state.type.value)
    console.print(states_table)

    transitions_table = Table(title="Transitions")
    transitions_table.add_column("Name", style="cyan")
    transitions_table.add_column("From", style="green")
    transitions_table.add_column("To", style="yellow")
    transitions_table.add_column("Action")
    for transition in graph.transitions.values():
        to_states = ", ".join(
            f"{code}: {state.name}" for code, state in sorted(transition.destinations.items())
        )
        transitions_table.add_row(
            transition.name + (" (default)" if transition.is_default else ""),
            ", ".join(state.name for state in transition.sources),
            to_states,
            str(transition.action) if transition.action is not None else "-",
        )
    console.print(transitions_table)


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--transition', '-t', 'transitions', multiple=True, required=True,
              help='Transition to apply (repeatable, applied in order)')
def run(config_file: str, transitions: tuple):
    """Apply transitions to a fresh entity and print each step"""
    try:
        machine = StateMachine(config=ConfigLoader().load_from_file(config_file))
    except (StateMachineError, OSError) as e:
        console.print(f"[red]Error loading configuration: {escape(str(e))}[/red]")
        sys.exit(1)

    entity = StatefulObject()
    machine.initialize(entity)
    console.print(f"Initialized in [cyan]{entity.state.name}[/cyan]")

    for name in transitions:
        from_state = entity.state
        try:
            changed = machine.apply(name, entity)
        except StateMachineError as e:
            console.print(f"[red]{name}: {escape(str(e))}[/red]")
            sys.exit(1)
        marker = "" if changed else " (no change)"
        console.print(f"{name}: {from_state.name} -> [cyan]{entity.state.name}[/cyan]{marker}")

    console.print(f"Final state: [bold]{entity.state.name}[/bold]")


if __name__ == '__main__':
    cli()
