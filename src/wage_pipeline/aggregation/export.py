"""
Export stored artifacts as JSON files.

Layout: <output_dir>/sums/, pyramid/ and titles/, one
<location>_<year>.json per partition in each.
"""

import json
from pathlib import Path

from wage_pipeline.core.models import Partition
from wage_pipeline.warehouse.base import ArtifactStore

ARTIFACT_DIRS = ("sums", "pyramid", "titles")


def artifact_filename(partition: Partition) -> str:
    return f"{partition.location}_{partition.year}.json"


def export_artifacts(
    artifact_store: ArtifactStore,
    output_dir: str | Path,
    partitions: list[Partition],
) -> list[Path]:
    """
    Write the stored artifacts of each partition to JSON files.

    Partitions without a stored summary are skipped.

    Args:
        artifact_store: Source of the artifacts
        output_dir: Root output directory (created if missing)
        partitions: Partitions to export

    Returns:
        Paths of the files written
    """
    root = Path(output_dir)
    for name in ARTIFACT_DIRS:
        (root / name).mkdir(parents=True, exist_ok=True)

    written = []
    for partition in partitions:
        summary = artifact_store.get_summary(partition)
        if summary is None:
            continue

        artifacts = {
            "sums": summary,
            "pyramid": artifact_store.get_pyramid(partition),
            "titles": artifact_store.get_title_analysis(partition),
        }
        for name, artifact in artifacts.items():
            if artifact is None:
                continue
            path = root / name / artifact_filename(partition)
            path.write_text(json.dumps(artifact.model_dump(mode="json"), indent=2))
            written.append(path)

    return written
