import json
from datetime import datetime, timezone

from backend.config_source import read_config_block
from backend.vault_source import build_record
from gantt_core.graph import TaskGraph
from gantt_core.pipeline import transform
from gantt_core.render import to_widget_payload
from gantt_core.validation import validate_config, load_config

# ANSI Escape codes for pretty terminal colors
class Colors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

DEMO_NOTE = """
# Q3 Roadmap

```base
views:
  - type: obsidianGantt
    name: Roadmap
    obsidianGantt:
      viewMode: Week
      defaultDuration: 5
      missingEndBehavior: infer
      missingStartBehavior: infer
      fieldMappings:
        id: file.path
        text: title
        start: start
        end: due
        progress: pct
        parent: parent
        parents: projects
        dependency: after
```
"""

DEMO_NOTES = [
    ("Projects/Launch.md", {"title": "Product launch", "start": "2025-07-01", "due": "2025-09-30", "pct": 35}),
    ("Projects/Hiring.md", {"title": "Hiring", "start": "2025-07-15", "due": "2025-08-31"}),
    ("Tasks/Design review.md", {"title": "Design review", "start": "2025-07-03", "parent": "[[Launch]]", "pct": 100}),
    ("Tasks/Onboarding docs.md", {
        "title": "Onboarding docs", "due": "7/25/2025",
        "projects": ["[[Launch]]", "[[Hiring]]"],
        "after": "[[Design review]]",
    }),
    ("Tasks/Budget.md", {"title": "Budget sign-off", "parent": "[[Launch]]"}),
    ("Tasks/Untitled.md", {"start": "2025-07-10"}),
]


def print_step(title, desc):
    print(f"\n{Colors.HEADER}{Colors.BOLD}===================================================={Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}► {title}{Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}===================================================={Colors.ENDC}")
    print(f"{Colors.OKCYAN}{desc}{Colors.ENDC}\n")


def main():
    print_step("STEP 1: Read the view config", "Locating the Gantt block inside a fenced ```base section...")
    raw_config = read_config_block(DEMO_NOTE)
    check = validate_config(raw_config)
    if not check.ok:
        print(f"{Colors.FAIL}✗ Config rejected: {check.errors}{Colors.ENDC}")
        return
    config = load_config(raw_config)
    print(f"{Colors.OKGREEN}✓ Config OK{Colors.ENDC} (viewMode={config.view_mode}, defaultDuration={config.default_duration:g})")

    print_step("STEP 2: Build records", "Merging frontmatter over file metadata for each note...")
    records = [build_record(path, props) for path, props in DEMO_NOTES]
    for r in records:
        print(f"  • {r['file']['path']}")

    print_step("STEP 3: Transform", "Mapping fields, inferring dates, resolving parents and dependencies...")
    result = transform(records, config, now=datetime(2025, 7, 1, tzinfo=timezone.utc))
    for task in result.tasks:
        tag = f"{Colors.OKBLUE}[virtual #{task.sequence}]{Colors.ENDC} " if task.is_virtual else ""
        print(f"  {tag}{task.id}: {task.text}  {task.start_date} → {task.end_date}  parent={task.parent}")
    for link in result.links:
        print(f"  {link.source} --[FS]--> {link.target}")
    for w in result.warnings:
        print(f"  {Colors.WARNING}⚠ {w.message}{Colors.ENDC}")

    print_step("STEP 4: Hierarchy", "Roots and children from the task graph...")
    graph = TaskGraph()
    graph.add_tasks(result.tasks)
    graph.add_links(result.links)
    for root in graph.roots():
        print(f"  {root}")
        for child in graph.children_of(root):
            print(f"    └─ {child}")

    print_step("STEP 5: Widget payload", "What the Gantt widget receives:")
    print(json.dumps(to_widget_payload(result, config), indent=2))


if __name__ == "__main__":
    main()
