"""Configuration for the SpreadScout arbitrage alert bot"""
import os

# ============================================================
# OPERATION MODE
# ============================================================
# Options:
# - "live": Fetch tickers from the CoinGecko API
# - "simulation": Generate realistic mock tickers (for testing when network is blocked)
MODE = os.getenv("MODE", "live")

# ============================================================
# PRICE PROVIDER
# ============================================================
COINGECKO_API_URL = os.getenv("COINGECKO_API_URL", "https://api.coingecko.com/api/v3")
COINGECKO_API_KEY = os.getenv("COINGECKO_API_KEY", "")

# Size of the shared "top assets" universe (ordered by market cap)
TOP_ASSETS_LIMIT = int(os.getenv("TOP_ASSETS_LIMIT", "100"))

# Per-request timeout against the provider
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))

# ============================================================
# NOTIFICATIONS
# ============================================================
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ============================================================
# SUBSCRIBER DEFAULTS
# ============================================================
DEFAULT_MIN_PROFIT = float(os.getenv("PROFIT_THRESHOLD", "0.02"))  # 2%
DEFAULT_MIN_VOLUME = float(os.getenv("VOLUME_THRESHOLD", "1000"))
DEFAULT_TARGET = os.getenv("TARGET_CURRENCY", "USDT")

# Optional JSON file for subscriber persistence (empty = in-memory only)
SUBSCRIBERS_FILE = os.getenv("SUBSCRIBERS_FILE", "")

# Pending free-text replies expire after this many seconds
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "300"))

# ============================================================
# SCHEDULING
# ============================================================
SCAN_INTERVAL_SECONDS = int(os.getenv("SCAN_INTERVAL_SECONDS", "60"))
ASSET_REFRESH_INTERVAL_SECONDS = int(os.getenv("ASSET_REFRESH_INTERVAL_SECONDS", "3600"))

# Upper bound on provider requests in flight during one scan cycle
MAX_CONCURRENT_FETCHES = int(os.getenv("MAX_CONCURRENT_FETCHES", "8"))

# ============================================================
# WEB SERVER
# ============================================================
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("PORT", "8080"))
