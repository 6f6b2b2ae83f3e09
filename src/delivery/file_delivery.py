"""
Hands a run's content to the generation stage as files
"""
import json
from pathlib import Path
from typing import Tuple

from core.entities import Category
from workflows.briefing import BriefingRun


class BundleFileWriter:
    name = "file"

    def __init__(self, output_dir: str = "output", podcast_id: str = "briefing"):
        self.output_dir = Path(output_dir)
        self.podcast_id = podcast_id
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def deliver(self, run: BriefingRun) -> Tuple[Path, Path]:
        """
        Write `<id>_<date>.json` (bundle and continuity digest)
        and `<id>_<date>.md` (human-readable). Raises on I/O failure.
        """
        stem = f"{self.podcast_id}_{run.date.isoformat()}"
        json_path = self.output_dir / f"{stem}.json"
        md_path = self.output_dir / f"{stem}.md"

        payload = run.bundle.to_dict()
        payload["date"] = run.date.isoformat()
        payload["continuity_digest"] = run.digest

        json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

        md_lines = [f"# Briefing {run.date.isoformat()}", ""]
        if run.digest:
            md_lines.append("## Recent episodes")
            md_lines.extend(f"- {line}" for line in run.digest.splitlines())
            md_lines.append("")

        for category in Category:
            items = run.bundle[category]
            if not items:
                continue
            md_lines.append(f"## {category.value.replace('_', ' ').title()}")
            for item in items:
                md_lines.append(f"### {item.title}")
                if item.summary:
                    md_lines.append(item.summary)
                source = f"*{item.source}*"
                if item.url:
                    source += f" ({item.url})"
                md_lines.append(source)
                md_lines.append("")

        md_path.write_text("\n".join(md_lines), encoding="utf-8")
        return json_path, md_path
