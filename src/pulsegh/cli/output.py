"""
Output - Console rendering of snapshots, drift reports and staleness.

Text output is colored when stdout is a TTY. With ``json_mode`` every
command prints exactly one JSON document on stdout.
"""

import json
import sys
from typing import Any

from pulsegh.application.sync import (
    ChangeReport,
    ProjectItems,
    RefreshResult,
    StalenessReport,
)
from pulsegh.core.domain import Snapshot


class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


class Symbols:
    """Status symbols used in text output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    PLUS = "+"
    MINUS = "-"

    BOX_H = "─"


class Console:
    """
    Console output helper.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        quiet: Whether to suppress everything but errors and results.
        json_mode: Whether results are printed as JSON.
    """

    def __init__(
        self,
        color: bool = True,
        verbose: bool = False,
        quiet: bool = False,
        json_mode: bool = False,
    ):
        self.json_mode = json_mode
        self.color = color and sys.stdout.isatty() and not json_mode
        self.verbose = verbose
        self.quiet = quiet or json_mode

        self._json_errors: list[str] = []

        if self.quiet:
            self.verbose = False

    def _c(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "", force: bool = False) -> None:
        """Print to stdout unless quiet (``force`` overrides)."""
        if self.quiet and not force:
            return
        print(text)

    def header(self, text: str) -> None:
        if self.quiet:
            return
        width = max(len(text) + 4, 50)
        border = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        if self.quiet:
            return
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """
        Print an error.

        Always printed, to stderr; collected instead in JSON mode.
        """
        if self.json_mode:
            self._json_errors.append(text)
            return
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED), file=sys.stderr)

    def warning(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"    {text}", Colors.DIM))

    def debug(self, text: str) -> None:
        if self.verbose:
            self.print(self._c(f"  [DEBUG] {text}", Colors.DIM))

    def item(self, text: str, status: str | None = None) -> None:
        """Print a list item with an optional ``ok``/``fail`` or free-form status."""
        if self.quiet:
            return
        status_str = ""
        if status == "ok":
            status_str = self._c(f" [{Symbols.CHECK}]", Colors.GREEN)
        elif status == "fail":
            status_str = self._c(f" [{Symbols.CROSS}]", Colors.RED)
        elif status:
            status_str = self._c(f" [{status}]", Colors.DIM)

        self.print(f"    {Symbols.DOT} {text}{status_str}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """Print a table; column widths follow the widest cell."""
        if self.quiet:
            return
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        self.print(
            "  " + "  ".join(self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers))
        )
        self.print("  " + "  ".join("-" * w for w in widths))
        for row in rows:
            self.print("  " + "  ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))

    # -------------------------------------------------------------------------
    # JSON
    # -------------------------------------------------------------------------

    def emit_json(self, payload: dict[str, Any]) -> None:
        """Print ``payload`` plus any collected errors as one JSON document."""
        output = dict(payload)
        if self._json_errors:
            output["errors"] = list(self._json_errors)
        print(json.dumps(output, indent=2, default=str))

    def flush_errors(self) -> None:
        """In JSON mode, print collected errors when no result was emitted."""
        if self.json_mode and self._json_errors:
            self.emit_json({"success": False})
            self._json_errors.clear()

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def snapshot_summary(self, snapshot: Snapshot, location: str) -> None:
        """Print what a freshly written snapshot contains."""
        if self.json_mode:
            self.emit_json({"success": True, "location": location, "snapshot": snapshot.to_dict()})
            return

        workspace = snapshot.workspace
        self.section(f"Workspace {workspace.login} ({workspace.kind.display_name})")

        if snapshot.projects:
            rows = []
            for project in sorted(snapshot.projects, key=lambda p: p.number):
                marker = " *" if project.number == snapshot.default_project else ""
                rows.append([f"#{project.number}{marker}", project.title, str(len(project.fields))])
            self.print()
            self.table(["Project", "Title", "Fields"], rows)

        if snapshot.repositories:
            self.print()
            for repo in snapshot.repositories:
                self.item(repo.full_name or repo.name, repo.visibility or None)

        self.print()
        self.success(f"Snapshot written to {location}")

    def drift_reports(self, reports: list[ChangeReport]) -> None:
        """Print one block per category, changes first."""
        if self.json_mode:
            self.emit_json(
                {
                    "has_drift": any(r.has_changes for r in reports),
                    "reports": [r.to_dict() for r in reports],
                }
            )
            return

        self.section("Drift")
        changed = [r for r in reports if r.has_changes]
        if not changed:
            self.success("No drift: snapshot matches the workspace")
            return

        for report in changed:
            self.print(f"  {self._c(report.label, Colors.BOLD)}")
            for key in report.added:
                self.print(self._c(f"    {Symbols.PLUS} {key}", Colors.GREEN))
            for key in report.removed:
                self.print(self._c(f"    {Symbols.MINUS} {key}", Colors.RED))

        unchanged = len(reports) - len(changed)
        if unchanged:
            self.detail(f"{unchanged} categories unchanged")

    def refresh_result(self, result: RefreshResult, location: str) -> None:
        if self.json_mode:
            self.emit_json({"success": True, "location": location, **result.to_dict()})
            return

        self.drift_reports(result.reports)
        if result.has_drift:
            self.info("New projects and repositories are not added automatically")
        for number in result.dropped_projects:
            self.warning(f"Project #{number} dropped from the snapshot")
        for name in result.dropped_repositories:
            self.warning(f"Repository {name} dropped from the snapshot")

        self.print()
        self.success(f"Snapshot refreshed at {location}")

    def staleness(self, report: StalenessReport) -> None:
        """Print the staleness verdict; shown even in quiet mode."""
        if self.json_mode:
            self.emit_json(report.to_dict())
            return

        if report.stale:
            self.print(self._c(f"  {Symbols.WARN} Snapshot is stale: {report.reason}", Colors.YELLOW), force=True)
            self.detail("Run `pulsegh --refresh` to update it")
        else:
            self.print(self._c(f"  {Symbols.CHECK} Snapshot is fresh: {report.reason}", Colors.GREEN), force=True)

    def project_items(self, number: int, items: ProjectItems) -> None:
        if self.json_mode:
            self.emit_json({"project_number": number, "pages": items.pages, **items.to_dict()})
            return

        self.section(f"Project #{number}: {items.title}")
        self.info(f"{len(items.items)} items in {items.pages} pages")
        if not items.complete:
            self.warning(
                f"Expected {items.total_count} items; the project changed during collection"
            )
        for node in items.items:
            content = node.get("content") or {}
            title = content.get("title") or node.get("id", "")
            self.item(str(title), content.get("__typename") or node.get("type"))
