import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from sourcemind.errors import InvalidInput, MissingCredential
from sourcemind.models.repository import language_shares
from sourcemind.orchestrator import LoadingState, RepoAnalysis
from sourcemind.refinery.engine import DEFAULT_MODEL, AnalysisEngine
from sourcemind.renderer.engine import render_to_html
from sourcemind.renderer.manifest import create_manifest
from sourcemind.settings.credentials import GEMINI_KEY, GITHUB_TOKEN_KEY, CredentialStore, MemoryStorage

console = Console()

STATUS_MESSAGES = {
    LoadingState.IDLE: "Preparing...",
    LoadingState.FETCHING_METADATA: "Fetching GitHub metadata...",
    LoadingState.ANALYZING_WITH_AI: "Analyzing with Gemini...",
    LoadingState.COMPLETE: "Done.",
    LoadingState.ERROR: "Failed.",
}


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # httpx logs every request at INFO, including URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SourceMind: AI repository architect")
    parser.add_argument("repo", nargs="?", help="Repository to analyze, as owner/name")
    parser.add_argument("--token", help="GitHub token (optional, raises the API rate limit)", default=None)
    parser.add_argument("--api-key", help="Google Gemini API key", default=None)
    parser.add_argument("--save", action="store_true", help="Persist --token/--api-key for later runs")
    parser.add_argument("--clear-credentials", action="store_true", help="Erase stored credentials")
    parser.add_argument("--model", help="Gemini model to use", default=DEFAULT_MODEL)
    parser.add_argument("--output", help="Path to output HTML or PDF report", default="report.html")
    parser.add_argument("--json", dest="json_path", help="Also write the raw analysis as JSON", default=None)
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def resolve_credentials(args: argparse.Namespace, store: CredentialStore) -> CredentialStore:
    """
    Applies --clear-credentials and the --token/--api-key overrides.
    Without --save, overrides only live for this run.
    """
    if args.clear_credentials:
        store.set(GEMINI_KEY, "")
        store.set(GITHUB_TOKEN_KEY, "")

    overrides: Dict[str, str] = {}
    if args.api_key is not None:
        overrides[GEMINI_KEY] = args.api_key.strip()
    if args.token is not None:
        overrides[GITHUB_TOKEN_KEY] = args.token.strip()

    if args.save:
        for key, value in overrides.items():
            store.set(key, value)
        return store
    if not overrides:
        return store

    session = {GEMINI_KEY: store.gemini_api_key, GITHUB_TOKEN_KEY: store.github_token, **overrides}
    return CredentialStore(storage=MemoryStorage(session), use_environment=False)


def print_report(pipeline: RepoAnalysis):
    meta = pipeline.metadata
    analysis = pipeline.analysis
    security = analysis.security_analysis

    console.print(Panel(
        f"[bold green]{meta.full_name}[/bold green]\n[italic]{meta.description or 'No description provided.'}[/italic]\n\n"
        f"{analysis.summary}",
        title="Analysis Complete",
    ))

    scores = Table(show_header=False, box=None)
    scores.add_row("Innovation", f"[bold]{analysis.innovation_score}[/bold]")
    scores.add_row("Complexity", analysis.complexity.value)
    scores.add_row("Security", f"{security.score} ({security.risk_level.value})")
    scores.add_row("Stars / Forks", f"{meta.stargazers_count} / {meta.forks_count}")
    langs = ", ".join(f"{name} {percent:.1f}%" for name, percent in language_shares(pipeline.languages or {}))
    scores.add_row("Languages", langs or "N/A")
    console.print(scores)

    if security.vulnerabilities:
        vulns = Table(title="Vulnerabilities")
        vulns.add_column("Severity")
        vulns.add_column("Type")
        vulns.add_column("Description")
        for v in security.vulnerabilities:
            vulns.add_row(v.severity.value, v.type, v.description)
        console.print(vulns)


def write_outputs(pipeline: RepoAnalysis, output: str, json_path: Optional[str]):
    manifest = create_manifest(pipeline.metadata, pipeline.languages or {}, pipeline.analysis)
    html_path = output[:-4] + ".html" if output.endswith(".pdf") else output
    render_to_html(manifest, html_path)

    if output.endswith(".pdf"):
        from weasyprint import HTML
        with console.status("Generating PDF..."):
            HTML(html_path).write_pdf(output)
        console.print(f"[bold green]PDF Generated: {output}[/bold green]")
    else:
        console.print(f"[bold green]Report Generated: {html_path}[/bold green]")

    if json_path:
        with open(json_path, "w", encoding="utf-8") as f:
            f.write(pipeline.analysis.model_dump_json(by_alias=True, indent=2))
        console.print(f"[bold green]JSON Written: {json_path}[/bold green]")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    store = resolve_credentials(args, CredentialStore())

    if not args.repo:
        if args.save or args.clear_credentials:
            console.print("[bold green]Settings saved.[/bold green]")
            return 0
        parser.error("repo is required (format: owner/name)")

    console.print(f"[bold blue]SourceMind[/bold blue] - Targeting: [cyan]{args.repo}[/cyan] | Model: [magenta]{args.model}[/magenta]")

    pipeline = RepoAnalysis(store, engine=AnalysisEngine(model_name=args.model))
    status = console.status(STATUS_MESSAGES[LoadingState.IDLE])
    pipeline.subscribe(lambda state: status.update(STATUS_MESSAGES[state]))

    for attempt in range(2):
        try:
            with status:
                asyncio.run(pipeline.analyze(args.repo))
            break
        except InvalidInput as e:
            console.print(f"[red]{e.message}[/red]")
            return 1
        except MissingCredential as e:
            if attempt or not sys.stdin.isatty():
                console.print(f"[red]{e.message}[/red]")
                console.print("Run again with [bold]--api-key KEY --save[/bold] or set GEMINI_API_KEY.")
                return 1
            console.print(f"[yellow]{e.message}[/yellow]")
            key = Prompt.ask("Gemini API key", password=True, console=console).strip()
            if not key:
                return 1
            store.set(GEMINI_KEY, key)

    if pipeline.state == LoadingState.ERROR:
        console.print(f"[red]Analysis Failed: {pipeline.error}[/red]")
        return 1

    print_report(pipeline)
    try:
        write_outputs(pipeline, args.output, args.json_path)
    except Exception as e:
        console.print(f"[red]Rendering Failed: {e}[/red]")
        logging.getLogger(__name__).debug("Rendering failure", exc_info=True)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
