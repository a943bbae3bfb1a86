"""Configuration constants for the content agent."""

DEFAULT_AGENT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_ITERATIONS = 15
DEFAULT_AGENT_MAX_TOKENS = 8192
DEFAULT_TOOL_TIMEOUT_SEC = 60.0
DEFAULT_MODEL_TIMEOUT_SEC = 300.0
DEFAULT_MAX_RESULT_CHARS = 50_000
DEFAULT_MAX_TOOL_WORKERS = 4

ITERATION_LIMIT_NOTE = "(Note: agent reached iteration limit of {limit} tool rounds)"

DEFAULT_GENERATION_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-2024-08-06",
    "gemini": "gemini-2.0-flash",
}

GHOST_API_VERSION = "v5.87"
GHOST_PAGE_SIZE = 100

TAVILY_API_URL = "https://api.tavily.com/search"

BRAND_NAME = "Pretty Perspectives by Style Me Pretty"
META_TITLE_SUFFIX = " | Pretty's Perspectives"
META_TITLE_MAX = 60
META_DESCRIPTION_MAX = 155
EXCERPT_MAX = 300
MAX_SUGGESTED_TAGS = 8
BASE_TAG = "wedding-vendors"

# Vocabulary for the key-phrase duplicate heuristic; overridable via matching.key_phrases
DEFAULT_KEY_PHRASES = [
    "instagram", "tiktok", "social media", "marketing", "pricing",
    "client experience", "vendor relationships", "wedding photography",
    "wedding planner", "florist", "venue", "videography", "catering",
    "referrals", "booking", "leads", "seo", "email marketing",
    "portfolio", "branding", "networking", "collaboration", "trends",
    "gen z", "millennial", "ai tools", "automation", "systems",
]

KEY_PHRASE_MIN_MATCHES = 2
WORD_OVERLAP_THRESHOLD = 0.6
OVERLAP_MIN_WORD_LENGTH = 4

IDEA_STOP_WORDS = frozenset({"piece", "on", "about", "the", "a", "an", "for", "and", "or", "article"})

TAG_KEYWORDS = {
    "photographer": "photography",
    "photography": "photography",
    "videographer": "videography",
    "videography": "videography",
    "planner": "wedding-planning",
    "planning": "wedding-planning",
    "florist": "florals",
    "flowers": "florals",
    "floral": "florals",
    "venue": "venues",
    "catering": "catering",
    "caterer": "catering",
    "dj": "entertainment",
    "band": "entertainment",
    "musician": "entertainment",
    "makeup": "beauty",
    "hair": "beauty",
    "dress": "fashion",
    "bridal": "bridal",
    "groom": "groom-style",
    "invitation": "stationery",
    "stationery": "stationery",
    "cake": "wedding-cakes",
    "dessert": "desserts",
    "decor": "decor",
    "design": "design",
    "marketing": "vendor-tips",
    "business": "vendor-tips",
    "tips": "vendor-tips",
    "advice": "advice",
}

SEO_KEYWORD_PATTERNS = {
    "marketing": ["wedding vendor marketing", "wedding business marketing", "marketing tips"],
    "pricing": ["wedding pricing", "how to price wedding services", "wedding vendor pricing"],
    "booking": ["booking more weddings", "wedding leads", "client booking"],
    "portfolio": ["wedding portfolio", "portfolio tips", "showcase work"],
    "social": ["wedding social media", "instagram for weddings", "social media marketing"],
    "networking": ["wedding vendor networking", "wedding industry connections", "vendor relationships"],
    "client": ["wedding client experience", "client communication", "client relationships"],
    "trends": ["wedding trends", "wedding industry trends", "upcoming trends"],
}

GENERAL_TREND_QUERIES = [
    "wedding industry marketing trends 2026",
    "Instagram algorithm changes wedding vendors 2026",
    "TikTok wedding business growth strategies",
    "wedding vendor SEO updates 2026",
    "AI tools for wedding professionals",
    "wedding client communication apps trends",
]

VENDOR_TREND_QUERIES = [
    "wedding photography business trends 2026",
    "wedding planner software tools new",
    "florist business sustainability trends weddings",
    "wedding venue marketing digital strategies",
    "videography trends wedding films 2026",
]


FALLBACK_VENDOR_TOPIC = "How Wedding Photographers Can Use AI Editing Tools to Scale in 2026"
FALLBACK_GENERAL_TOPIC = "The 2026 Guide to Instagram Reels for Wedding Vendors"
FALLBACK_TOPIC_KEYWORDS = ["wedding marketing", "2026 trends"]
ALTERNATE_TOPIC_WEEK_OFFSET = 10

PROCESSED_INTERVIEWS_FILE = "processed-interviews.json"
WEEK_COUNTER_FILE = "week-counter.json"
