"""
AgentBoard CLI - Typer Commands

Scan repositories, run the agent personas over a project and work the
resulting board from the terminal.
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from agentboard.agents.orchestrator import generate_more_tasks, orchestrate_project_analysis
from agentboard.ai.client import GenerationClient
from agentboard.config import BoardConfig, load_config
from agentboard.exceptions import (
    AgentBoardError,
    AgentNotFoundError,
    DocumentNotFoundError,
    ProjectNotFoundError,
)
from agentboard.integrations.github import GitHubClient
from agentboard.mcp_server import main as run_mcp_server
from agentboard.persistence import BoardRepository, TaskStatus
from agentboard.projects import add_repository, create_project, upload_kb_document
from agentboard.scanner import register_scanned_projects, scan_directory

logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(
    name="agentboard",
    help="Scan git repositories and let LLM agent personas fill a prioritized project board",
    add_completion=False,
    no_args_is_help=True,
)

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "dim"}


def _load() -> tuple[BoardConfig, BoardRepository]:
    config = load_config()
    return config, BoardRepository(config.db_path)


def _fail(error: AgentBoardError) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def scan(
    directory: str = typer.Argument(..., help="Repository, or directory containing repositories"),
) -> None:
    """Register every git repository found at or directly below DIRECTORY."""
    try:
        _, repo = _load()
        with repo:
            scanned = scan_directory(directory)
            if not scanned:
                console.print(f"[yellow]No git repositories found in {directory}[/yellow]")
                return

            result = register_scanned_projects(repo, scanned)
            for project in result.created:
                console.print(f"[green]Added[/green] {project.name} [dim]{project.path}[/dim]")
            for path in result.skipped:
                console.print(f"[dim]Already registered: {path}[/dim]")

            for item in scanned:
                if item.is_likely_child_repo and item.suggested_parent_name:
                    console.print(
                        f"[cyan]{item.name}[/cyan] looks like part of "
                        f"[bold]{item.suggested_parent_name}[/bold] (see 'agentboard merge')"
                    )
    except AgentBoardError as e:
        _fail(e)


@app.command()
def add(
    name: str = typer.Argument(..., help="Project name"),
    path: str = typer.Argument(..., help="Path to project directory"),
    description: str = typer.Option("", help="Project description"),
    repo_url: str = typer.Option("", "--repo-url", help="Repository URL"),
) -> None:
    """Add a project by hand."""
    try:
        _, repo = _load()
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_dir():
            console.print(f"[yellow]Warning: Directory does not exist: {resolved}[/yellow]")
        with repo:
            project = create_project(
                repo,
                name=name,
                path=str(resolved),
                description=description or None,
                repo_url=repo_url or None,
            )
        console.print(f"[green]Added project '{name}'[/green] [dim]{project.id}[/dim]")
    except AgentBoardError as e:
        _fail(e)


@app.command()
def projects() -> None:
    """List registered projects."""
    try:
        _, repo = _load()
        with repo:
            items = repo.list_projects()
            if not items:
                console.print("[dim]No projects yet. Run 'agentboard scan <dir>'.[/dim]")
                return

            table = Table(show_header=True, header_style="bold")
            table.add_column("ID", style="cyan")
            table.add_column("Name", style="green")
            table.add_column("Path", style="dim")
            table.add_column("Tasks", justify="right")
            table.add_column("Last Analyzed", style="dim")

            for project in items:
                analyzed = project.last_analyzed_at.isoformat()[:16] if project.last_analyzed_at else "-"
                table.add_row(
                    project.id[:8],
                    project.name,
                    project.path,
                    str(repo.count_tasks(project.id)),
                    analyzed,
                )
        console.print(table)
    except AgentBoardError as e:
        _fail(e)


def _resolve_project_id(repo: BoardRepository, project_id: str) -> str:
    """Accept a full id or an unambiguous prefix."""
    if repo.get_project(project_id) is not None:
        return project_id
    matches = [p.id for p in repo.list_projects() if p.id.startswith(project_id)]
    if len(matches) != 1:
        raise ProjectNotFoundError(project_id)
    return matches[0]


@app.command()
def analyze(
    project_id: str = typer.Argument(..., help="Project ID (or prefix)"),
    isolate: bool = typer.Option(
        False, "--isolate", help="Keep successful agents when others fail"
    ),
) -> None:
    """Run the full multi-agent analysis over a project."""
    try:
        config, repo = _load()
        with repo:
            resolved = _resolve_project_id(repo, project_id)
            client = GenerationClient(config)

            async def run() -> dict:
                try:
                    return await orchestrate_project_analysis(
                        resolved,
                        repo,
                        client,
                        github=GitHubClient(config.github_token or None),
                        task_cap=config.task_cap,
                        isolate_failures=isolate or config.isolate_agent_failures,
                    )
                finally:
                    await client.close()

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task(description="Running agents...", total=None)
                summary = asyncio.run(run())

        analysis = summary["analysis"]
        lines = [
            f"[bold]{analysis['projectType']}[/bold]  {', '.join(analysis['techStack']) or '-'}",
            "",
            analysis["summary"],
            "",
            f"Agents: {summary['agentCount']}  Insights: {summary['totalInsights']}",
            f"Tasks created: {summary['tasksCreated']} "
            f"({summary['agentTasks']} from agents, {summary['markdownTasks']} from markdown)",
            f"Knowledge base documents: {summary['kbDocuments']}",
        ]
        if summary["taskLimitReached"]:
            lines.append(
                f"[yellow]Task limit reached: {summary['tasksAvailable']} generated, "
                f"cap is {config.task_cap}[/yellow]"
            )
        for agent_type, reason in summary.get("failedAgents", {}).items():
            lines.append(f"[red]{agent_type} failed:[/red] {reason}")
        console.print(Panel("\n".join(lines), title="Analysis complete", border_style="green"))
    except AgentBoardError as e:
        _fail(e)


@app.command("generate-tasks")
def generate_tasks(
    project_id: str = typer.Argument(..., help="Project ID (or prefix)"),
    count: int = typer.Option(20, "--count", "-n", min=1, help="Most tasks to add"),
) -> None:
    """Ask the active agents for more tasks."""
    try:
        config, repo = _load()
        with repo:
            resolved = _resolve_project_id(repo, project_id)
            client = GenerationClient(config)

            async def run() -> dict:
                try:
                    return await generate_more_tasks(
                        resolved,
                        repo,
                        client,
                        count=count,
                        isolate_failures=config.isolate_agent_failures,
                    )
                finally:
                    await client.close()

            result = asyncio.run(run())
        console.print(
            f"[green]Generated {result['tasksGenerated']} tasks[/green] "
            f"({result['totalTasks']} on the board)"
        )
    except AgentBoardError as e:
        _fail(e)


@app.command()
def tasks(
    project_id: str = typer.Argument(..., help="Project ID (or prefix)"),
    status: TaskStatus = typer.Option(None, "--status", "-s", help="Only this column"),
    agent: str = typer.Option(None, "--agent", "-a", help="Only tasks from this agent type"),
) -> None:
    """Show a project's board."""
    try:
        _, repo = _load()
        with repo:
            items = repo.list_tasks(_resolve_project_id(repo, project_id), status=status, agent_type=agent)

        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="dim")
        table.add_column("ID", style="cyan")
        table.add_column("Status")
        table.add_column("Priority")
        table.add_column("Agent", style="magenta")
        table.add_column("Title")

        for task in items:
            style = PRIORITY_STYLES[task.priority.value]
            table.add_row(
                str(task.order),
                task.id[:8],
                task.status.value,
                f"[{style}]{task.priority.value}[/{style}]",
                task.agent_type or "-",
                task.title,
            )
        console.print(table)
    except AgentBoardError as e:
        _fail(e)


@app.command("task-status")
def task_status(
    task_id: str = typer.Argument(..., help="Task ID"),
    status: TaskStatus = typer.Argument(..., help="todo, in_progress or done"),
) -> None:
    """Move a task to another column."""
    try:
        _, repo = _load()
        with repo:
            task = repo.update_task(task_id, status=status)
        console.print(f"[green]{task.title}[/green] -> {task.status.value}")
    except AgentBoardError as e:
        _fail(e)


@app.command("next-task")
def next_task(
    project_id: str = typer.Argument(..., help="Project ID (or prefix)"),
    agent: str = typer.Option(None, "--agent", "-a", help="Only tasks from this agent type"),
) -> None:
    """Show the task to work on next (in progress first, then priority, then board order)."""
    try:
        _, repo = _load()
        with repo:
            task = repo.get_next_task(_resolve_project_id(repo, project_id), agent_type=agent)

        if task is None:
            console.print("[yellow]No open tasks[/yellow]")
            return

        style = PRIORITY_STYLES[task.priority.value]
        body = task.description or ""
        if task.ai_reasoning:
            body += f"\n\n[dim]Why: {task.ai_reasoning}[/dim]"
        console.print(
            Panel(
                body.strip() or "[dim]No description[/dim]",
                title=f"[bold]{task.title}[/bold]",
                subtitle=f"{task.id} | {task.status.value} | [{style}]{task.priority.value}[/{style}]"
                f" | {task.agent_type or '-'}",
            )
        )
    except AgentBoardError as e:
        _fail(e)


@app.command("task-add")
def task_add(
    project_id: str = typer.Argument(..., help="Project ID (or prefix)"),
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option(None, "--description", "-d", help="Task description"),
    priority: str = typer.Option("medium", "--priority", "-p", help="low, medium or high"),
    agent: str = typer.Option(None, "--agent", "-a", help="Agent type to attribute the task to"),
) -> None:
    """Add a task to the end of a project's board."""
    try:
        _, repo = _load()
        with repo:
            task = repo.create_task(
                _resolve_project_id(repo, project_id),
                title,
                description=description,
                priority=priority,
                agent_type=agent,
            )
        console.print(f"[green]Added[/green] {task.title} [dim]{task.id}[/dim]")
    except AgentBoardError as e:
        _fail(e)


@app.command()
def agents(project_id: str = typer.Argument(..., help="Project ID (or prefix)")) -> None:
    """List a project's agent personas."""
    try:
        _, repo = _load()
        with repo:
            items = repo.list_agents(_resolve_project_id(repo, project_id))

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="cyan")
        table.add_column("")
        table.add_column("Type", style="magenta")
        table.add_column("Name")
        table.add_column("Active")
        table.add_column("Categories", style="dim")

        for agent in items:
            table.add_row(
                agent.id[:8],
                agent.icon,
                agent.type,
                agent.name + ("" if agent.is_default else " [dim](custom)[/dim]"),
                "[green]yes[/green]" if agent.is_active else "[red]no[/red]",
                ", ".join(agent.task_categories),
            )
        console.print(table)
    except AgentBoardError as e:
        _fail(e)


@app.command("agent-toggle")
def agent_toggle(agent_id: str = typer.Argument(..., help="Agent ID")) -> None:
    """Activate or deactivate an agent."""
    try:
        _, repo = _load()
        with repo:
            agent = repo.get_agent(agent_id)
            if agent is None:
                raise AgentNotFoundError(f"Agent {agent_id} not found")
            agent = repo.update_agent(agent_id, is_active=not agent.is_active)
        state = "[green]active[/green]" if agent.is_active else "[red]inactive[/red]"
        console.print(f"{agent.icon} {agent.name} is now {state}")
    except AgentBoardError as e:
        _fail(e)


@app.command()
def insights(project_id: str = typer.Argument(..., help="Project ID (or prefix)")) -> None:
    """Show agent insights for a project."""
    try:
        _, repo = _load()
        with repo:
            items = repo.list_insights(_resolve_project_id(repo, project_id))

        if not items:
            console.print("[dim]No insights yet. Run 'agentboard analyze'.[/dim]")
            return
        for insight in items:
            console.print(f"[magenta]{insight.agent_type:>11}[/magenta]  {insight.content}")
    except AgentBoardError as e:
        _fail(e)


@app.command()
def merge(
    target_id: str = typer.Argument(..., help="Project that absorbs the other"),
    source_id: str = typer.Argument(..., help="Project merged in as a repository"),
) -> None:
    """Merge one project into another as a repository."""
    try:
        _, repo = _load()
        with repo:
            project = add_repository(
                repo, _resolve_project_id(repo, target_id), _resolve_project_id(repo, source_id)
            )
        names = ", ".join(entry["name"] for entry in project.repositories)
        console.print(f"[green]Merged.[/green] {project.name} now includes: {names}")
    except AgentBoardError as e:
        _fail(e)


@app.command()
def delete(
    project_id: str = typer.Argument(..., help="Project ID (or prefix)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a project with its tasks, insights, agents and documents."""
    try:
        _, repo = _load()
        with repo:
            resolved = _resolve_project_id(repo, project_id)
            project = repo.get_project(resolved)
            if not yes and not typer.confirm(f"Delete project '{project.name}' and everything it owns?"):
                raise typer.Exit(0)
            repo.delete_project(resolved)
        console.print(f"[green]Deleted project '{project.name}'[/green]")
    except AgentBoardError as e:
        _fail(e)


@app.command("kb-list")
def kb_list(
    project_id: str = typer.Option(None, "--project", "-p", help="Only this project's documents"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Filter by tag (repeatable)"),
    search: str = typer.Option(None, "--search", "-q", help="Search title and content"),
) -> None:
    """List knowledge-base documents."""
    try:
        _, repo = _load()
        with repo:
            resolved = _resolve_project_id(repo, project_id) if project_id else None
            documents = repo.list_documents(project_id=resolved, tags=tag or (), search=search)

        table = Table(show_header=True, header_style="bold")
        table.add_column("Slug", style="cyan")
        table.add_column("Title")
        table.add_column("Source", style="dim")
        table.add_column("Tags", style="magenta")

        for document in documents:
            table.add_row(document.slug, document.title, document.source.value, ", ".join(document.tags))
        console.print(table)
    except AgentBoardError as e:
        _fail(e)


@app.command("kb-show")
def kb_show(slug: str = typer.Argument(..., help="Document slug")) -> None:
    """Render a knowledge-base document."""
    try:
        _, repo = _load()
        with repo:
            document = repo.get_document(slug)
        if document is None:
            raise DocumentNotFoundError(f"Document '{slug}' not found")

        if document.summary:
            console.print(Panel(document.summary, title=document.title, border_style="cyan"))
        console.print(Markdown(document.content))
    except AgentBoardError as e:
        _fail(e)


@app.command("kb-upload")
def kb_upload(
    file: str = typer.Argument(..., help="Markdown file"),
    project_id: str = typer.Option(None, "--project", "-p", help="Owning project"),
) -> None:
    """Add a markdown file to the knowledge base."""
    try:
        config, repo = _load()
        with repo:
            resolved = _resolve_project_id(repo, project_id) if project_id else None
            client = GenerationClient(config)

            async def run():
                try:
                    return await upload_kb_document(repo, client, file, project_id=resolved)
                finally:
                    await client.close()

            document = asyncio.run(run())
        console.print(f"[green]Uploaded[/green] {document.title} [dim]({document.slug})[/dim]")
    except AgentBoardError as e:
        _fail(e)


@app.command()
def settings() -> None:
    """Show provider and key configuration (keys masked)."""
    try:
        config = load_config()
    except AgentBoardError as e:
        _fail(e)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("AI provider", config.provider)
    table.add_row("Model", config.model_for(config.provider))
    for name, masked in config.describe_api_keys().items():
        table.add_row(name, masked or "[dim]not set[/dim]")
    table.add_row("Database", str(config.db_path))
    table.add_row("Task cap", str(config.task_cap))
    table.add_row("Isolate agent failures", "yes" if config.isolate_agent_failures else "no")
    console.print(table)


@app.command("mcp")
def mcp_command() -> None:
    """Serve the board to coding agents over MCP (stdio)."""
    run_mcp_server()


def run() -> None:
    """Entry point wrapper that invokes the Typer app."""
    app()


if __name__ == "__main__":
    run()
