from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from ingest.build_chunks_lib import ChunkingConfig, build_chunks


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--raw_dir", type=str, default="knowledge", help="Knowledge root (one dir per category)")
    parser.add_argument("--artifacts_dir", type=str, default="artifacts", help="Output artifacts dir")
    parser.add_argument("--max_chunk_size", type=int, default=None, help="Max characters per chunk")
    parser.add_argument("--overlap_size", type=int, default=None, help="Approximate overlap in characters")
    parser.add_argument("--workers", type=int, default=1, help="Chunk documents in N processes")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    defaults = ChunkingConfig()
    cfg = ChunkingConfig(
        max_chunk_size=args.max_chunk_size if args.max_chunk_size is not None else defaults.max_chunk_size,
        overlap_size=args.overlap_size if args.overlap_size is not None else defaults.overlap_size,
    )

    print(f"Building chunks from {args.raw_dir} (max_chunk_size={cfg.max_chunk_size}, overlap={cfg.overlap_size})")
    stats = build_chunks(
        args.raw_dir,
        args.artifacts_dir,
        cfg,
        max_workers=args.workers,
        show_progress=True,
    )
    print(f"  docs: {stats['num_docs']}")
    print(f"  chunks: {stats['num_chunks']}")

    artifacts_dir = Path(args.artifacts_dir)
    print("Done.")
    for name in ("chunks.parquet", "records.jsonl", "id_map.json", "build_meta.json"):
        print(f"  - {artifacts_dir / name}")


if __name__ == "__main__":
    main()
