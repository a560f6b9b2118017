"""Cultural-graph provider adapters.

    - QlooProvider — Qloo Taste AI over httpx (taste insights, v2 insights,
      tag resolution).
"""

from src.providers.cultural_graph.qloo_provider import QlooProvider

__all__ = ["QlooProvider"]
