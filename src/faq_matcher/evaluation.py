"""
Offline evaluation of a matcher configuration.

Inputs (CSV with header row):
    faqs.csv    => id,question,answer,tags
    queries.csv => query,gold_id

Metrics:
    accuracy_Hit@1   fraction of queries whose accepted id equals gold_id
    MRR              mean reciprocal rank of gold_id in [id] + alternates
                     (top-k, deduplicated); 0 when absent
    avg/p95 latency  wall-clock per match() call
    combined_score   alpha × accuracy + (1 - alpha) × (1 - min(avg / maxlat, 1))
"""

import csv
import json
import logging
import math
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence, Tuple

from .exceptions import CorpusContractError
from .models import FaqRecord
from .tagging import serialize_tags

logger = logging.getLogger(__name__)

FAQ_COLUMNS = ("id", "question", "answer", "tags")
QUERY_COLUMNS = ("query", "gold_id")
RESULT_COLUMNS = ("query", "gold_id", "pred_id", "pred_score", "rank", "latency_ms")


def _coerce_id(value: Any) -> Any:
    """CSV ids are text; numeric ids become ints so they compare equal to store ids"""
    if isinstance(value, str):
        value = value.strip()
        if value.lstrip('-').isdigit():
            return int(value)
    return value


def _read_csv(path: Path, required: Sequence[str]) -> List[Dict[str, str]]:
    with open(path, newline='', encoding='utf-8') as fh:
        reader = csv.DictReader(fh)
        missing = [col for col in required if col not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path.name} missing column(s): {', '.join(missing)}")
        rows = list(reader)
    if not rows:
        raise ValueError(f"{path.name} is empty")
    return rows


def load_faqs_csv(path) -> List[FaqRecord]:
    """Load FAQ records (tags: JSON array or ';'/',' separated)"""
    path = Path(path)
    faqs = []
    for row in _read_csv(path, FAQ_COLUMNS[:3]):
        row = dict(row)
        row["id"] = _coerce_id(row["id"])
        faqs.append(FaqRecord.from_mapping(row))
    logger.info(f"Loaded {len(faqs)} FAQs from {path}")
    return faqs


def load_queries_csv(path) -> List[Tuple[str, Any]]:
    """Load (query, gold_id) pairs"""
    path = Path(path)
    queries = [(row["query"], _coerce_id(row["gold_id"])) for row in _read_csv(path, QUERY_COLUMNS)]
    logger.info(f"Loaded {len(queries)} evaluation queries from {path}")
    return queries


@dataclass
class EvaluationReport:
    samples: int
    accuracy: float
    mrr: float
    avg_latency_ms: float
    p95_latency_ms: float
    combined_score: float
    alpha: float
    max_latency_ms: float
    rows: List[Dict[str, Any]] = field(default_factory=list, repr=False)

    def metrics(self) -> Dict[str, Any]:
        """Metrics in the persisted JSON shape"""
        return {
            "samples": self.samples,
            "accuracy_Hit@1": round(self.accuracy, 4),
            "MRR": round(self.mrr, 4),
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "p95_latency_ms": round(self.p95_latency_ms, 2),
            "combined_score": round(self.combined_score, 4),
            "alpha_accuracy_weight": self.alpha,
            "max_acceptable_latency_ms": self.max_latency_ms,
        }


def p95(latencies: Sequence[float]) -> float:
    """Nearest-rank 95th percentile (floor(0.95 × n)-th smallest value)"""
    if not latencies:
        return 0.0
    ordered = sorted(latencies)
    index = max(0, math.floor(0.95 * len(ordered)) - 1)
    return ordered[index]


def evaluate(
    pipeline,
    faqs: Sequence[FaqRecord],
    queries: Sequence[Tuple[str, Any]],
    top_k: int = 5,
    alpha: float = 0.7,
    max_latency_ms: float = 2000.0,
    clock: Callable[[], float] = time.perf_counter,
) -> EvaluationReport:
    """
    Run every query through pipeline.match() and score the predictions.

    Args:
        pipeline: MatchPipeline (anything with match(query, corpus))
        faqs: Corpus snapshot
        queries: (query, gold_id) pairs
        top_k: Ranked ids considered for MRR
        alpha: Accuracy weight in the combined score
        max_latency_ms: Latency at which the latency factor reaches 0
        clock: Time source in seconds (injected in tests)

    Returns:
        EvaluationReport with per-query rows
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be within [0, 1], got {alpha}")
    if max_latency_ms <= 0:
        raise ValueError(f"max_latency_ms must be positive, got {max_latency_ms}")

    corpus = tuple(faqs)
    if not corpus:
        raise CorpusContractError("Evaluation corpus is empty")

    correct = 0
    mrr_sum = 0.0
    latencies = []
    rows = []

    for query, gold_id in queries:
        t0 = clock()
        result = pipeline.match(query, corpus)
        latency_ms = (clock() - t0) * 1000.0
        latencies.append(latency_ms)

        ranked = [] if result.id is None else [result.id]
        for alternate in result.alternates:
            if alternate.id not in ranked:
                ranked.append(alternate.id)
        ranked = ranked[:top_k]

        rank = ranked.index(gold_id) + 1 if gold_id in ranked else None
        if result.id is not None and result.id == gold_id:
            correct += 1
        if rank is not None:
            mrr_sum += 1.0 / rank

        rows.append({
            "query": query,
            "gold_id": gold_id,
            "pred_id": result.id,
            "pred_score": round(result.score, 6),
            "rank": rank,
            "latency_ms": round(latency_ms, 3),
        })

    n = len(queries)
    accuracy = correct / n if n else 0.0
    avg_latency = sum(latencies) / n if n else 0.0
    latency_factor = 1.0 - min(avg_latency / max_latency_ms, 1.0)

    report = EvaluationReport(
        samples=n,
        accuracy=accuracy,
        mrr=mrr_sum / n if n else 0.0,
        avg_latency_ms=avg_latency,
        p95_latency_ms=p95(latencies),
        combined_score=alpha * accuracy + (1 - alpha) * latency_factor,
        alpha=alpha,
        max_latency_ms=max_latency_ms,
        rows=rows,
    )
    logger.info(
        f"Evaluation: {n} queries, Hit@1={report.accuracy:.3f}, MRR={report.mrr:.3f}, "
        f"avg={report.avg_latency_ms:.1f}ms, p95={report.p95_latency_ms:.1f}ms"
    )
    return report


def write_results(report: EvaluationReport, results_path, metrics_path) -> None:
    """Write per-query rows as CSV and metrics as pretty-printed JSON"""
    results_path = Path(results_path)
    metrics_path = Path(metrics_path)
    results_path.parent.mkdir(parents=True, exist_ok=True)
    metrics_path.parent.mkdir(parents=True, exist_ok=True)

    with open(results_path, 'w', newline='', encoding='utf-8') as fh:
        writer = csv.DictWriter(fh, fieldnames=RESULT_COLUMNS)
        writer.writeheader()
        for row in report.rows:
            writer.writerow({**row, "pred_id": "" if row["pred_id"] is None else row["pred_id"],
                             "rank": "" if row["rank"] is None else row["rank"]})

    with open(metrics_path, 'w', encoding='utf-8') as fh:
        json.dump(report.metrics(), fh, indent=2)

    logger.info(f"Wrote {len(report.rows)} result rows to {results_path} and metrics to {metrics_path}")


def write_faqs_csv(faqs: Sequence[FaqRecord], path) -> None:
    """Write FAQs (with embeddings, when present) in the faqs.csv layout"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', newline='', encoding='utf-8') as fh:
        writer = csv.DictWriter(fh, fieldnames=FAQ_COLUMNS + ("embedding", "embedding_version"))
        writer.writeheader()
        for faq in faqs:
            writer.writerow({
                "id": faq.id,
                "question": faq.question,
                "answer": faq.answer,
                "tags": serialize_tags(faq.tags),
                "embedding": json.dumps(list(faq.embedding)) if faq.has_embedding else "",
                "embedding_version": faq.embedding_version or "",
            })
    logger.info(f"Wrote {len(faqs)} FAQs to {path}")
