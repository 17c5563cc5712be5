"""
Seed realistic evaluations through the API.

Distribution (so 7-, 14- and 30-day dashboards all have data):
- timestamps: 50% in the last 7 days, 25% 7-14 days ago, 25% 14-30 days ago
- scores: 85% good (70-95), 10% marginal (60-70), 5% failures (20-60)
- latency: 70% fast (200-800ms), 25% medium (800-1500ms), 5% slow (1500-3000ms)
- PII: 80% none, 15% 1-3 tokens, 5% 3-5 tokens

Usage:
    python scripts/seed_evaluations.py --count 200
    python scripts/seed_evaluations.py --count 50 --api-key devkey --base-url http://localhost:8000
"""

from __future__ import annotations

import argparse
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from evalboard.client import ApiError, AuthenticationRequired, DashboardClient  # noqa: E402
from evalboard.schemas.evaluation import EvaluationCreate  # noqa: E402

PROMPTS_AND_RESPONSES = [
    ("What is the capital of France?", "The capital of France is Paris."),
    (
        "Explain quantum computing in simple terms.",
        "Quantum computers use qubits that can hold several states at once.",
    ),
    (
        "Write a Python function to calculate fibonacci numbers.",
        "def fibonacci(n):\n    return n if n <= 1 else fibonacci(n - 1) + fibonacci(n - 2)",
    ),
    (
        "What are the benefits of regular exercise?",
        "Better cardiovascular health, stronger muscles and more energy.",
    ),
    (
        "What is the difference between React and Vue?",
        "React uses JSX and a virtual DOM; Vue favors templates.",
    ),
    (
        "What are the best practices for API design?",
        "Consistent naming, versioning, authentication and clear errors.",
    ),
    (
        "How does photosynthesis work?",
        "Plants turn light, CO2 and water into glucose and oxygen.",
    ),
]


def generate_score(rng: random.Random) -> int:
    roll = rng.random()
    if roll < 0.05:
        return rng.randint(20, 60)
    if roll < 0.15:
        return rng.randint(60, 70)
    return rng.randint(70, 95)


def generate_latency(rng: random.Random) -> int:
    roll = rng.random()
    if roll < 0.7:
        return rng.randint(200, 799)
    if roll < 0.95:
        return rng.randint(800, 1499)
    return rng.randint(1500, 2999)


def generate_flags(rng: random.Random, score: int) -> dict[str, Any] | None:
    if score < 50 and rng.random() < 0.5:
        return {"error": True}
    if score < 70 and rng.random() < 0.3:
        return {"timeout": True}
    if rng.random() < 0.1:
        return {"warning": "slow_response"}
    return None


def generate_pii_tokens(rng: random.Random) -> int:
    roll = rng.random()
    if roll < 0.8:
        return 0
    if roll < 0.95:
        return rng.randint(1, 3)
    return rng.randint(3, 5)


def generate_timestamp(rng: random.Random, now: datetime) -> datetime:
    roll = rng.random()
    if roll < 0.5:
        days_ago = rng.random() * 7
    elif roll < 0.75:
        days_ago = 7 + rng.random() * 7
    else:
        days_ago = 14 + rng.random() * 16
    return now - timedelta(days=days_ago)


def build_evaluations(count: int, seed: int | None = None) -> list[EvaluationCreate]:
    rng = random.Random(seed)
    now = datetime.now(timezone.utc)

    evaluations = []
    for i in range(count):
        prompt, response = rng.choice(PROMPTS_AND_RESPONSES)
        score = generate_score(rng)
        evaluations.append(
            EvaluationCreate(
                interaction_id=f"seed-{i:05d}",
                prompt=prompt,
                response=response,
                score=score,
                latency_ms=generate_latency(rng),
                pii_tokens_redacted=generate_pii_tokens(rng),
                flags=generate_flags(rng, score),
                created_at=generate_timestamp(rng, now),
            )
        )
    return evaluations


def seed(base_url: str, api_key: str | None, count: int, rng_seed: int | None) -> int:
    """POST `count` evaluations. Returns the number created."""

    evaluations = build_evaluations(count, rng_seed)
    print(f"Seeding {len(evaluations)} evaluations to {base_url}...")

    created = 0
    with DashboardClient(base_url, api_key) as dashboard:
        for i, evaluation in enumerate(evaluations, 1):
            try:
                dashboard.record_evaluation(evaluation)
                created += 1
            except AuthenticationRequired:
                print("✗ Authentication required. Set --api-key or disable auth.")
                break
            except (ApiError, httpx.HTTPError) as e:
                print(f"✗ [{i}/{len(evaluations)}] {evaluation.interaction_id}: {e}")

        if created:
            stats = dashboard.get_stats(days=7)
            print()
            print(f"Created: {created}")
            print(f"Last 7 days: {stats.total} evaluations, avg score {stats.avg_score}")
            for point in stats.daily_trends:
                print(f"  {point.date}  count={point.count:<5} avg_score={point.avg_score}")
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed evaluations for dashboard testing")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="API base URL (default: http://localhost:8000)",
    )
    parser.add_argument("--api-key", help="API key (required if AUTH_ENABLED=1)")
    parser.add_argument("--count", type=int, default=100, help="Evaluations to create")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (reproducible data)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print evaluations that would be created without POSTing",
    )

    args = parser.parse_args()
    if args.count < 1:
        parser.error("--count must be at least 1")

    if args.dry_run:
        for evaluation in build_evaluations(args.count, args.seed):
            print(
                f"{evaluation.created_at:%Y-%m-%d %H:%M}  score={evaluation.score:<3} "
                f"latency={evaluation.latency_ms}ms  pii={evaluation.pii_tokens_redacted}"
            )
        return

    created = seed(args.base_url, args.api_key, args.count, args.seed)
    sys.exit(0 if created else 1)


if __name__ == "__main__":
    main()
