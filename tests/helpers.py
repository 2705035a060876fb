"""Record builders shared by the test modules."""

from datetime import datetime, timedelta, timezone

from attest_cli.config import TierThresholds
from attest_cli.models import CommitRecord, ScoredCommit

BASE_TIME = datetime(2025, 10, 7, 9, 0, tzinfo=timezone.utc)


def make_commit(hash="abc1234", message="fix typo", minutes=0, author="Jane Doe",
                email="jane@example.com", **metrics) -> CommitRecord:
    return CommitRecord(
        hash=hash,
        author_name=author,
        author_email=email,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        message=message,
        **metrics,
    )


def make_scored(hash, score, minutes=0, model="unknown", author="Jane Doe") -> ScoredCommit:
    return ScoredCommit(
        hash=hash,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        author_name=author,
        subject=f"commit {hash}",
        score=score,
        tier=TierThresholds().tier_for(score),
        model=model,
    )
