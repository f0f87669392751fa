#!/usr/bin/env python3
"""
Evaluate a matcher configuration against labelled queries.

Usage:
    python scripts/evaluate_matcher.py --faqs faqs.csv --queries queries.csv \
        --topk 5 --alpha 0.7 --maxlat 2000 --variant bm25_tags

Inputs:
    faqs.csv    => id,question,answer,tags[,embedding,embedding_version]
    queries.csv => query,gold_id

Outputs (in --out-dir):
    matcher_results.csv
    matcher_metrics.json

Configuration is read from FAQ_MATCHER_* variables (.env.local is loaded
first); command-line flags win.
"""

import argparse
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from faq_matcher.config import IdfMode, MatcherConfig, Variant  # noqa: E402
from faq_matcher.embeddings import EmbeddingIndexer, EmbeddingProviderFactory  # noqa: E402
from faq_matcher.evaluation import evaluate, load_faqs_csv, load_queries_csv, write_results  # noqa: E402
from faq_matcher.logging_config import setup_logging  # noqa: E402
from faq_matcher.pipeline import MatchPipeline  # noqa: E402


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate FAQ matching accuracy and latency")
    parser.add_argument("--faqs", default="faqs.csv", help="FAQ corpus CSV")
    parser.add_argument("--queries", default="queries.csv", help="Labelled queries CSV")
    parser.add_argument("--topk", type=int, default=5, help="Ranked ids considered for MRR")
    parser.add_argument("--alpha", type=float, default=0.7, help="Accuracy weight in the combined score")
    parser.add_argument("--maxlat", type=float, default=2000.0, help="Max acceptable avg latency (ms)")
    parser.add_argument("--variant", choices=[v.value for v in Variant], help="Ranker variant")
    parser.add_argument("--idf-mode", choices=[m.value for m in IdfMode], help="BM25 IDF mode")
    parser.add_argument("--embed", action="store_true",
                        help="Embed FAQs without stored embeddings before evaluating")
    parser.add_argument("--out-dir", default=".", help="Directory for results CSV and metrics JSON")
    parser.add_argument("--log-file", default=None, help="Also log to this file (rotated)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(log_file=args.log_file)

    faqs_path = Path(args.faqs)
    queries_path = Path(args.queries)
    for path in (faqs_path, queries_path):
        if not path.exists():
            print(f"{path.name} not found at {path}", file=sys.stderr)
            return 1

    overrides = {}
    if args.variant:
        overrides["variant"] = Variant(args.variant)
    if args.idf_mode:
        overrides["idf_mode"] = IdfMode(args.idf_mode)
    config = MatcherConfig.from_env(env_file=project_root / ".env.local", **overrides)

    try:
        faqs = load_faqs_csv(faqs_path)
        queries = load_queries_csv(queries_path)
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    provider = EmbeddingProviderFactory.create(config)
    if args.embed and provider is not None:
        report = EmbeddingIndexer(provider, dimension=config.embedding_dimension).embed_corpus(faqs)
        print(f"Embedding: {report.message}")
        faqs = report.records

    with MatchPipeline(config, provider=provider) as pipeline:
        report = evaluate(pipeline, faqs, queries, top_k=args.topk, alpha=args.alpha, max_latency_ms=args.maxlat)

    out_dir = Path(args.out_dir)
    results_path = out_dir / "matcher_results.csv"
    metrics_path = out_dir / "matcher_metrics.json"
    write_results(report, results_path, metrics_path)

    print("=" * 80)
    print(json.dumps(report.metrics(), indent=2))
    print("=" * 80)
    print(f"Results: {results_path}")
    print(f"Metrics: {metrics_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
