#!/usr/bin/env python3
"""
Generate embeddings for a FAQ corpus CSV.

Usage:
    python scripts/batch_embed_faqs.py --faqs faqs.csv --output faqs_embedded.csv
    python scripts/batch_embed_faqs.py --faqs faqs.csv --force          # re-embed everything
    python scripts/batch_embed_faqs.py --faqs faqs.csv --outdated       # only stale versions
    python scripts/batch_embed_faqs.py --status                         # provider health only

The provider comes from FAQ_MATCHER_EMBEDDING_PROVIDER (.env.local is
loaded first).
"""

import argparse
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from faq_matcher.config import MatcherConfig  # noqa: E402
from faq_matcher.embeddings import (  # noqa: E402
    EmbeddingIndexer,
    EmbeddingProviderFactory,
    HttpEmbeddingProvider,
    embedding_stats,
)
from faq_matcher.evaluation import load_faqs_csv, write_faqs_csv  # noqa: E402
from faq_matcher.logging_config import setup_logging  # noqa: E402


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch-generate FAQ embeddings")
    parser.add_argument("--faqs", default="faqs.csv", help="FAQ corpus CSV")
    parser.add_argument("--output", default=None, help="Output CSV (default: overwrite --faqs)")
    parser.add_argument("--force", action="store_true", help="Re-embed FAQs that already have embeddings")
    parser.add_argument("--outdated", action="store_true", help="Only re-embed FAQs with another version")
    parser.add_argument("--version", default=None, help="Embedding version label")
    parser.add_argument("--delay", type=float, default=0.1, help="Pause between requests (seconds)")
    parser.add_argument("--status", action="store_true", help="Check provider status and exit")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(log_file=str(project_root / "logs" / "batch-embed.log"))

    config = MatcherConfig.from_env(env_file=project_root / ".env.local")
    provider = EmbeddingProviderFactory.create(config)
    if provider is None:
        print("No embedding provider configured (set FAQ_MATCHER_EMBEDDING_PROVIDER)", file=sys.stderr)
        return 1

    if args.status:
        if isinstance(provider, HttpEmbeddingProvider):
            print(json.dumps(provider.check_status(), indent=2))
        else:
            print(json.dumps(provider.get_model_info(), indent=2))
        return 0

    faqs_path = Path(args.faqs)
    if not faqs_path.exists():
        print(f"{faqs_path.name} not found at {faqs_path}", file=sys.stderr)
        return 1

    faqs = load_faqs_csv(faqs_path)
    indexer_kwargs = {"dimension": config.embedding_dimension, "delay_s": args.delay}
    if args.version:
        indexer_kwargs["version"] = args.version
    indexer = EmbeddingIndexer(provider, **indexer_kwargs)

    if args.outdated:
        report = indexer.regenerate_outdated(faqs)
    else:
        report = indexer.embed_corpus(faqs, force=args.force)
    provider.close()

    output_path = Path(args.output) if args.output else faqs_path
    write_faqs_csv(report.records, output_path)

    print("=" * 80)
    print(json.dumps(report.to_dict(), indent=2))
    print(json.dumps(embedding_stats(report.records, config.embedding_dimension), indent=2))
    print("=" * 80)
    return 0 if report.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
