"""
RPC Failover Manager
====================
Manages a pool of RPC providers with automatic degradation detection and failover.
"""

import time
from typing import Dict, List, Optional

import requests

from rent_guardian.config.settings import Settings
from rent_guardian.shared.system.logging import Logger


class RpcConnectionManager:
    """
    Manages RPC connection lifecycle, health tracking, and failover.
    """

    def __init__(self, rpc_urls: Optional[List[str]] = None, benchmark: bool = False):
        self.rpc_urls = rpc_urls or [Settings.RPC_URL, *Settings.RPC_FALLBACK_URLS]

        # Deduplicate and filter empty
        self.rpc_urls = list(dict.fromkeys([u for u in self.rpc_urls if u]))
        if not self.rpc_urls:
            raise ValueError("RpcConnectionManager needs at least one RPC URL")

        self.current_index = 0
        self.stats: Dict[str, Dict] = {
            url: {
                "success": 0,
                "errors": 0,
                "avg_latency": 0.0,
                "last_error_time": 0,
            }
            for url in self.rpc_urls
        }

        Logger.info(f"🛡️ [RPC] Manager initialized with {len(self.rpc_urls)} providers")

        if benchmark and len(self.rpc_urls) > 1:
            self.benchmark_providers()

    def benchmark_providers(self):
        """
        Ping all providers and point current_index at the lowest latency one.
        """
        Logger.info(f"🏎️ [RPC] Benchmarking {len(self.rpc_urls)} providers...")

        best_idx = self.current_index
        min_latency = float("inf")

        for i, url in enumerate(self.rpc_urls):
            try:
                start = time.time()
                payload = {"jsonrpc": "2.0", "id": 1, "method": "getHealth"}
                resp = requests.post(url, json=payload, timeout=2)

                if resp.status_code == 200:
                    latency = (time.time() - start) * 1000
                    self._record_success(url, latency)
                    Logger.debug(f"   ✅ {url}: {latency:.0f}ms")

                    if latency < min_latency:
                        min_latency = latency
                        best_idx = i
                else:
                    self._record_error(url)
                    Logger.debug(f"   ❌ {url}: HTTP {resp.status_code}")

            except requests.RequestException:
                self._record_error(url)
                Logger.debug(f"   ❌ {url}: Timeout/Error")

        if best_idx != self.current_index:
            self.current_index = best_idx
            Logger.info(
                f"🏎️ [RPC] Latency Rebalance: Switched to {self.get_active_url()} ({min_latency:.0f}ms)"
            )

    def get_active_url(self) -> str:
        return self.rpc_urls[self.current_index]

    def post(self, payload: dict, timeout: Optional[float] = None) -> requests.Response:
        """
        Execute POST request with metrics tracking and failover on hard failure.

        A network error rotates the provider for the NEXT call and re-raises.
        """
        url = self.get_active_url()
        start = time.time()

        try:
            response = requests.post(url, json=payload, timeout=timeout or Settings.RPC_TIMEOUT_S)

            latency = (time.time() - start) * 1000
            self._record_success(url, latency)

            # Soft failures degrade the score; caller decides on retry
            if response.status_code == 429 or response.status_code >= 500:
                self._record_error(url)

            return response

        except requests.RequestException as e:
            self._record_error(url)
            self.switch_provider(reason=f"Network Error: {e}")
            raise

    def _record_success(self, url: str, latency: float):
        s = self.stats[url]
        s["success"] += 1
        # Exponential moving average for latency
        if s["avg_latency"] == 0:
            s["avg_latency"] = latency
        else:
            s["avg_latency"] = 0.9 * s["avg_latency"] + 0.1 * latency

    def _record_error(self, url: str):
        s = self.stats[url]
        s["errors"] += 1
        s["last_error_time"] = time.time()

    def switch_provider(self, reason: str = "Unknown"):
        """Force rotation to next provider."""
        if len(self.rpc_urls) < 2:
            return
        old_url = self.get_active_url()
        self.current_index = (self.current_index + 1) % len(self.rpc_urls)

        Logger.warning(
            f"🔄 [RPC] Switching Provider: {old_url} -> {self.get_active_url()} (Reason: {reason})"
        )

    def get_stats(self):
        return {"active_provider": self.get_active_url(), "providers": self.stats}
