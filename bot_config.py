"""
bot_config.py
=============
Shared settings for the Hoohu-bot maintenance scripts.

Everything can be overridden from the environment so the scripts can run
from cron / CI without editing this file.
"""

import os

# ─── HOME WIKI ────────────────────────────────────────────────────
API_URL    = os.getenv("HOOHU_API", "https://xyy.miraheze.org/w/api.php")
USER_AGENT = os.getenv("HOOHU_UA", "Hoohu-bot/1.0 (User:Hoohu-bot; xyy.miraheze.org)")
USERNAME   = os.getenv("HOOHU_USERNAME", "Hoohu-bot")
PASSWORD   = os.getenv("HOOHU_PASSWORD", "")
MAX_RETRIES = 10

# ─── FOREIGN WIKIS (interlanguage targets) ────────────────────────
OTHER_APIS = {
    "vi": "https://vi.wikipedia.org/w/api.php",
    "zh": "http://xyy.huijiwiki.com/api.php",
}
REMOTE_MAX_RETRIES = 6

# huijiwiki refuses API clients without this header
HUIJI_HOST        = "huijiwiki.com"
HUIJI_AUTHKEY_ENV = "HUIJI_AUTHKEY"

# ─── BEHAVIOUR ────────────────────────────────────────────────────
MAX_DEPTH = 20    # redirect / move hops before giving up
THROTTLE  = 0.5   # seconds between edits

TAG_REDIRECT = "hoohu-redirect"
TAG_SANDBOX  = "hoohu-sandbox"
TAG_DAILY    = "hoohu-daily"
