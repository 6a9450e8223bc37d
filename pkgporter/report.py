"""Plain-text summaries of install runs and store state."""

from .models import InstallReport
from .store import ArtifactStore


def render_report(report: InstallReport, store: ArtifactStore) -> str:
    lines = [f"Installation Report: {report.root}", ""]
    lines.append(f"  Installed: {len(report.installed)}")
    lines.append(f"  Kept (newer version already installed): {len(report.kept)}")
    if report.recovered:
        lines.append(f"  Recovered from repository: {', '.join(report.recovered)}")
    status = "installed" if report.root_installed else "NOT installed"
    lines.append(f"  Main package {report.root}: {status}")
    lines.append("")

    if report.cycles:
        lines.append("🔁 Dependency cycles (installed in discovery order):")
        for cycle in report.cycles:
            lines.append(f"   • {' -> '.join(cycle)}")
        lines.append("")

    unfetchable = store.unfetchable()
    for name in report.unfetchable_additions:
        if name not in unfetchable:
            unfetchable.append(name)
    if unfetchable:
        lines.append("⚠️  Unfetchable packages (install these manually):")
        for name in unfetchable:
            lines.append(f"   • {name}")
        lines.append("")

    if report.failed:
        lines.append("❌ Failed installs:")
        for name in report.failed:
            lines.append(f"   • {name}")
        lines.append("")

    if report.attention:
        lines.append("🔧 Needs operator attention:")
        for item in report.attention:
            lines.append(f"   • {item}")
        lines.append("")

    conflicts = store.conflict_lines()
    if conflicts:
        lines.append("Conflict resolution log:")
        for line in conflicts:
            lines.append(f"   {line}")
        lines.append("")

    return "\n".join(lines).rstrip("\n")


def render_status(store: ArtifactStore) -> str:
    if not store.exists():
        return f"No ported package store at {store.root}"

    root = store.read_main_package() or "(unknown)"
    lines = [
        f"Store: {store.root}",
        f"Main package: {root}",
        f"Artifacts: {len(store.artifacts())}",
        f"Processed: {len(store.processed())}",
    ]
    unfetchable = store.unfetchable()
    if unfetchable:
        lines.append(f"Unfetchable ({len(unfetchable)}): {', '.join(unfetchable)}")
    else:
        lines.append("Unfetchable: none")

    conflicts = store.conflict_lines()
    if conflicts:
        lines.append("Conflict records:")
        lines.extend(f"  {line}" for line in conflicts)
    return "\n".join(lines)


__all__ = [
    "render_report",
    "render_status",
]
