"""CLI interface for promptfit.

Requires the 'cli' extra: pip install promptfit[cli]
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

try:
    import typer
    from rich.console import Console
    from rich.table import Table
except ImportError:
    print(
        "CLI dependencies not installed. Install with: pip install promptfit[cli]",
        file=sys.stderr,
    )
    sys.exit(1)

from promptfit import __version__
from promptfit.models.settings import TokenSettings
from promptfit.tokens.session import TokenSession
from promptfit.truncation.diff import changed_file_paths
from promptfit.truncation.waterfall import WaterfallTruncator

app = typer.Typer(
    name="promptfit",
    help="Token budgeting and structure-aware truncation for LLM prompts.",
    add_completion=False,
)
console = Console()


def _read(path: Path) -> str:
    if not path.is_file():
        console.print(f"[red]Error: {path} does not exist[/red]")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
) -> None:
    if version:
        console.print(f"promptfit {__version__}")
        raise typer.Exit()


@app.command()
def info() -> None:
    """Show information about the promptfit installation."""
    settings = TokenSettings()
    table = Table(title="promptfit info")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", __version__)
    table.add_row("Python", sys.version.split()[0])

    for dep_name in ["tiktoken", "pydantic"]:
        try:
            mod = __import__(dep_name)
            ver = getattr(mod, "__version__", "installed")
            table.add_row(dep_name, str(ver))
        except ImportError:
            table.add_row(dep_name, "[red]not installed[/red]")

    table.add_row("Default max input tokens", str(settings.default_max_input_tokens))
    table.add_row("Safety margin", f"{settings.safety_margin_ratio:.2f}")
    table.add_row("Chars per token (estimate)", f"{settings.chars_per_token:.1f}")
    console.print(table)


@app.command()
def count(
    path: Path = typer.Argument(..., help="File whose tokens to count"),  # noqa: B008
) -> None:
    """Count the tokens in a file."""
    text = _read(path)
    session = TokenSession()
    tokens = asyncio.run(session.count(text))
    source = "estimate" if session.tokenizer is None else "tokenizer"
    console.print(f"  File: {path.name} ({tokens} tokens, {source})")
    console.print(f"[dim]  Heuristic estimate: {session.estimate_tokens(text)} tokens[/dim]")


@app.command("truncate-diff")
def truncate_diff(
    path: Path = typer.Argument(..., help="Unified diff to truncate"),  # noqa: B008
    target: int = typer.Option(..., "--target", "-t", help="Token budget for the diff"),
    hunks: bool = typer.Option(
        False, "--hunks", help="Keep whole hunks only instead of cutting by lines"
    ),
) -> None:
    """Truncate a unified diff to fit a token budget and print the result."""
    diff_text = _read(path)
    settings = TokenSettings(prefer_hunk_truncation=hunks)
    truncator = WaterfallTruncator(TokenSession(settings=settings))

    async def _run() -> tuple[str, int, int]:
        session = truncator.session
        before = await session.count(diff_text)
        if before <= target:
            return diff_text, before, before
        if hunks:
            result = await truncator.emergency_truncate_diff(diff_text, target)
        else:
            result = await truncator.truncate_content(diff_text, before - target)
            if not result.content:
                result = await truncator.emergency_truncate_diff(diff_text, target)
        return result.content, before, await session.count(result.content)

    content, before, after = asyncio.run(_run())
    files = len(changed_file_paths(diff_text))
    console.print(
        f"[dim]{files} file(s), {before} -> {after} tokens (target {target})[/dim]",
        highlight=False,
    )
    typer.echo(content)


if __name__ == "__main__":
    app()
