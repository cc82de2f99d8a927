"""
CareNexa - Command Line Interface

Interactive CLI for the AI doctor agents and the vitals scorer.
Provides a REPL interface with rich formatting for answers.

Usage Examples:
    # Interactive mode (REPL) with the general advisor
    python main.py

    # Single question to a specific agent
    python main.py --agent nutrition "Is intermittent fasting safe?"

    # Score vitals (works without an API key via the local fallback)
    python main.py --vitals 72 98

    # Verbose logging
    python main.py --verbose

Environment Variables:
    OPENAI_API_KEY: LLM credential (CARENEXA_LLM_API_KEY / LLM_API_KEY also accepted)
    LLM_MODEL_CANDIDATES: Comma-separated models tried in order
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from carenexa.agents.prompts import AGENT_TEMPLATES, build_prompt, normalize_agent_type, parse_triage
from carenexa.audit import get_audit_recorder, summarize_prompt
from carenexa.errors import CareNexaError
from carenexa.health.insights import HealthInsights, VitalsInput, generate_insights
from carenexa.health.vector import AXES
from carenexa.llm import get_provider_chain

console = Console()

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

_STATUS_STYLES = {
    "excellent": "bold green",
    "good": "green",
    "fair": "yellow",
    "poor": "red",
    "critical": "bold red",
}


# ── CLI Formatting ──────────────────────────────────────────────────────────


def print_header(agent_type: str) -> None:
    """Display the welcome banner for interactive mode."""
    console.print(
        Panel(
            "[bold blue]CareNexa AI Doctor[/bold blue]\n"
            f"[dim]Agent: {agent_type}. Not a substitute for professional medical advice.[/dim]\n\n"
            "[dim]Commands: '/agent <name>' to switch, 'quit' or Ctrl+C to exit[/dim]",
            border_style="blue",
        )
    )


def display_insights(result: HealthInsights) -> None:
    style = _STATUS_STYLES.get(result.overall_status, "bold")
    source = "local fallback" if result.fallback else "AI analysis"
    console.print(
        Panel(
            f"[bold]Score:[/bold] {result.score}/100  "
            f"[{style}]{result.overall_status}[/{style}]\n"
            f"[bold]Vector score:[/bold] {result.vector_score}/100\n"
            f"[dim]Source: {source}[/dim]",
            title="🩺 Health Score",
            border_style="cyan",
            expand=False,
        )
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Axis", style="bold")
    table.add_column("Value", justify="right")
    for axis in AXES:
        table.add_row(axis, f"{result.health_vector.get(axis, 0.0):.2f}")
    console.print(table)

    for title, items in (
        ("Insights", result.insights),
        ("Recommendations", result.recommendations),
        ("Risk factors", result.risk_factors),
    ):
        if items:
            console.print(f"\n[bold yellow]{title}:[/bold yellow]")
            for item in items:
                console.print(f"  • {item}")


# ── Commands ────────────────────────────────────────────────────────────────


def run_vitals(heart_rate: float, oxygen_level: float) -> None:
    with console.status("[bold green]Scoring vitals...", spinner="dots"):
        result = generate_insights(VitalsInput(heart_rate=heart_rate, oxygen_level=oxygen_level))
    display_insights(result)


def run_single_query(query: str, agent_type: str, verbose: bool = False) -> None:
    """Send one question to an agent and display the answer with its receipt."""
    console.print(f"\n[bold cyan]❓ {agent_type}:[/bold cyan] {query}\n")

    with console.status("[bold green]🤔 Thinking...", spinner="dots"):
        start_time = time.time()
        try:
            chain = get_provider_chain()
            result = chain.generate(build_prompt(query, agent_type))
        except CareNexaError as e:
            console.print(
                Panel(
                    f"[bold red]Error:[/bold red] {e}\n\n"
                    f"[dim]{e.to_payload()}[/dim]",
                    title="❌ Request Failed",
                    border_style="red",
                )
            )
            logger.error(f"Query failed after {time.time() - start_time:.2f}s", exc_info=verbose)
            return
        elapsed = time.time() - start_time

    receipt = get_audit_recorder().record_consultation(
        agent_type=agent_type,
        prompt_length=len(query),
        response_content=result.text,
        model_id=result.model,
        prompt_summary=summarize_prompt(query),
    )

    if agent_type == "triage":
        decision = parse_triage(result.text)
        console.print(
            Panel(
                f"[bold]Route to:[/bold] {decision.agent_type}\n"
                f"[bold]Urgency:[/bold] {decision.urgency}\n"
                f"[bold]Reasoning:[/bold] {decision.reasoning}",
                title="🚦 Triage",
                border_style="magenta",
            )
        )
    else:
        console.print(Panel(Markdown(result.text), title="💡 Answer", border_style="green"))

    console.print(
        f"[dim]{result.model} | {elapsed:.2f}s | receipt {receipt.id} | "
        f"sha256 {receipt.content_hash[:16]}...[/dim]"
    )
    console.print(f"[dim]{receipt.disclaimer}[/dim]")


# ── Interactive Mode ────────────────────────────────────────────────────────


def interactive_mode(agent_type: str, verbose: bool = False) -> None:
    print_header(agent_type)
    query_count = 0

    while True:
        try:
            query = console.input("\n[bold blue]>[/bold blue] ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print(f"\n[dim]Goodbye! Answered {query_count} questions.[/dim]")
            break

        if not query:
            continue

        if query.lower() in ("quit", "exit", "q"):
            console.print(f"[dim]Goodbye! Answered {query_count} questions.[/dim]")
            break

        if query.startswith("/agent"):
            agent_type = normalize_agent_type(query[len("/agent"):])
            console.print(f"[dim]Switched to {agent_type}[/dim]")
            continue

        run_single_query(query, agent_type, verbose=verbose)
        query_count += 1


# ── Main Entry Point ────────────────────────────────────────────────────────


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="CareNexa AI health companion CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                   # Interactive mode
  %(prog)s --agent fitness "Best warm-up?"   # Single question
  %(prog)s --vitals 72 98                    # Score heart rate / SpO2
        """,
    )
    parser.add_argument(
        "query",
        nargs="*",
        help="Question for the agent (if not provided, enters interactive mode)",
    )
    parser.add_argument(
        "--agent",
        "-a",
        default="general",
        choices=sorted(AGENT_TEMPLATES),
        help="Agent template to use (default: general)",
    )
    parser.add_argument(
        "--vitals",
        nargs=2,
        type=float,
        metavar=("HEART_RATE", "SPO2"),
        help="Score vitals and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main() -> None:
    """Main CLI entry point."""
    args = parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.vitals:
        heart_rate, oxygen_level = args.vitals
        if heart_rate <= 0 or oxygen_level <= 0:
            console.print("[bold red]❌ heart rate and SpO2 must be positive[/bold red]")
            sys.exit(2)
        run_vitals(heart_rate, oxygen_level)
        return

    if args.query:
        run_single_query(" ".join(args.query), args.agent, verbose=args.verbose)
        return

    interactive_mode(args.agent, verbose=args.verbose)


if __name__ == "__main__":
    main()
