#!/usr/bin/env python3
"""
AAC Assistant - Tool Registry and Model Router
==============================================

Command-line entry point.

Usage:
    python main.py tools                    # Print advertised tool descriptors
    python main.py tools --anthropic        # ... in the tool-calling wire shape
    python main.py route "message"          # Classify a message and show the routing decision
    python main.py --help                   # Show help
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is in path
sys.path.insert(0, str(Path(__file__).parent))

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from infra.config import ConfigError, ConfigManager, get_api_key
from infra.logging import TurnContext, configure_logging, log_turn_end
from routing import RouterConfig, RouterService
from tools import InMemoryTherapyStore, create_default_tools

console = Console()


def show_tools(anthropic_shape: bool) -> int:
    """Print the capability descriptors of the default catalog."""
    registry = create_default_tools(InMemoryTherapyStore())
    definitions = registry.to_anthropic_tools() if anthropic_shape else registry.list_definitions()

    table = Table(title=f"{len(registry)} tools")
    table.add_column("Name", style="bold cyan")
    table.add_column("Category")
    table.add_column("Required")
    for category in sorted({tool.category for tool in registry.list_tools()}):
        for tool in registry.list_by_category(category):
            required = tool.input_schema.get("required", [])
            table.add_row(tool.name, category, ", ".join(required) or "-")
    console.print(table)

    console.print_json(data=definitions)
    return 0


async def route(message: str, config: ConfigManager) -> int:
    """Classify one message and print the routing decision with its cost."""
    if not get_api_key():
        console.print("[yellow]ANTHROPIC_API_KEY is not set; classification will use the fallback.[/yellow]")

    router = RouterService(RouterConfig.from_config(config))

    with TurnContext() as turn_id:
        routing = await router.route_message(message)
        log_turn_end(turn_id, success=True, total_cost=routing.router_cost.total_cost)

    classification = routing.classification
    selection = routing.model_selection

    table = Table(show_header=False, box=None)
    table.add_row("[bold]Class[/bold]", classification.message_class.value
                  + (" [dim](fallback)[/dim]" if classification.fallback else ""))
    table.add_row("[bold]Model[/bold]", selection.model.value)
    table.add_row("[bold]Reason[/bold]", selection.reason)
    table.add_row("[bold]Latency[/bold]", f"{classification.latency_ms:.1f}ms")
    table.add_row(
        "[bold]Tokens[/bold]",
        f"{classification.router_usage.input_tokens} in / {classification.router_usage.output_tokens} out",
    )
    table.add_row("[bold]Router cost[/bold]", f"${routing.router_cost.total_cost:.6f}")

    console.print(Panel(table, title="Routing", border_style="blue"))
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="AAC assistant tool registry and model router",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to configuration file (default: $AAC_CONFIG or config.yaml)"
    )
    parser.add_argument(
        "--log-level", "-l",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    tools_parser = commands.add_parser("tools", help="Print advertised tool descriptors")
    tools_parser.add_argument(
        "--anthropic",
        action="store_true",
        help="Use the tool-calling wire shape (input_schema)"
    )

    route_parser = commands.add_parser("route", help="Classify a message and show the routing decision")
    route_parser.add_argument("message", help="Message to route")

    args = parser.parse_args()

    configure_logging(getattr(logging, args.log_level))
    logger = logging.getLogger("aac.main")

    try:
        if args.command == "tools":
            return show_tools(args.anthropic)
        return asyncio.run(route(args.message, ConfigManager(args.config)))

    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        return 2
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
