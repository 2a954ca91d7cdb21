"""
Render a vault folder into the Gantt widget payload.

Usage:
    python scripts/render_vault.py path/to/vault --config path/to/Projects.base
    python scripts/render_vault.py path/to/vault --config Gantt.md --out gantt.json
"""

import argparse
import json
import logging
import os
import sys

# Add parent directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from backend.config_source import read_config_file
from backend.vault_source import load_vault_records
from gantt_core.config import config
from gantt_core.pipeline import transform
from gantt_core.render import to_widget_payload
from gantt_core.validation import validate_config, load_config, explain


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Map vault notes to Gantt tasks")
    parser.add_argument("vault", help="Folder containing the Markdown notes")
    parser.add_argument("--config", required=True, help=".base, .yaml or .md file holding the view config")
    parser.add_argument("--key", default=config['config_key'], help="Config block key (default: %(default)s)")
    parser.add_argument("--out", help="Write the payload here instead of stdout")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config['log_level'], format='%(asctime)s - %(levelname)s - %(message)s')

    raw_config = read_config_file(args.config, key=args.key)
    check = validate_config(raw_config)
    if not check.ok:
        print("❌ Invalid Gantt configuration:")
        print(explain(check))
        return 2

    gantt_config = load_config(raw_config)
    records = load_vault_records(args.vault)
    result = transform(records, gantt_config)

    payload = json.dumps(to_widget_payload(result, gantt_config), indent=2, default=str)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(payload)
        print(f"✓ Wrote {len(result.tasks)} tasks, {len(result.links)} links to {args.out}")
    else:
        print(payload)

    if result.warnings:
        print(f"\n⚠ {len(result.warnings)} warning(s):", file=sys.stderr)
        for message in result.warning_messages():
            print(f"   - {message}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
