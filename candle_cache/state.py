from candle_cache.candles.store import CandleStore

# Global in-memory store for the running API process.
# Written only by the background jobs, read by the API routes.
store = CandleStore()
