"""
Model Attributor
────────────────
Picks the most probable assistant/model behind a commit from the model hints
of its matched indicators:

  no hints             → "unknown" (whatever the tier)
  one distinct hint    → that hint
  several hints        → hint of the highest-point indicator; equal points
                         fall back to catalog declaration order
"""

from __future__ import annotations

from attest_cli.detectors.matcher import MatchResult
from attest_cli.models import UNKNOWN_MODEL


class ModelAttributor:
    def attribute(self, match: MatchResult) -> str:
        hinted = [m for m in match if m.indicator.model_hint]
        if not hinted:
            return UNKNOWN_MODEL

        distinct = {m.indicator.model_hint for m in hinted}
        if len(distinct) == 1:
            return distinct.pop()

        best = min(hinted, key=lambda m: (-m.points, m.position))
        return best.indicator.model_hint
