"""
Constants used throughout card-fetcher.
"""

# Sheet conventions
ANONYMOUS_CREATOR = "Anonymous"
CREATOR_NOTES_SEPARATOR = "\n\n"
BOOK_NAME_PLACEHOLDER = "{{char}}"
BOOK_NAME_SUFFIX = " Lore Book"
USER_PLACEHOLDER = "{{user}}"
CHAR_PLACEHOLDER = "{{char}}"

# Template spellings found in the wild, rewritten to the canonical placeholders
USER_TEMPLATE_VARIANTS = ("{{User}}", "{{USER}}", "<USER>", "<user>")
CHAR_TEMPLATE_VARIANTS = ("{{Char}}", "{{CHAR}}", "<BOT>", "<bot>")

# Curly quotes and friends, straightened by normalize_symbols
SYMBOL_REPLACEMENTS = {
    "‘": "'",
    "’": "'",
    "‚": "'",
    "‛": "'",
    "“": '"',
    "”": '"',
    "„": '"',
    "‟": '"',
    "′": "'",
    "″": '"',
    "\u00a0": " ",
}

# Tag names: the next letter after one of these symbols is capitalized
CAPITALIZE_AFTER = frozenset("-_/,.;:&+|([{")

# Standard tag vocabulary (slug -> canonical display name). Tags whose slug is
# listed here always render with this name, regardless of source spelling.
STANDARD_TAGS = {
    "nsfw": "NSFW",
    "sfw": "SFW",
    "aiassistant": "AI Assistant",
    "ntr": "NTR",
    "bdsm": "BDSM",
    "milf": "MILF",
    "dilf": "DILF",
    "lgbtq": "LGBTQ",
    "pov": "POV",
    "malepov": "Male POV",
    "femalepov": "Female POV",
    "anypov": "Any POV",
    "canbeanypovbutmadewithmalepovinmind": "Can Be Any POV But Made With Male POV In Mind",
    "vtuber": "VTuber",
    "oc": "OC",
    "rpg": "RPG",
    "scifi": "Sci-Fi",
    "foxgirl": "Fox Girl",
    "catgirl": "Cat Girl",
    "wellintentionedextremist": "Well Intentioned Extremist",
    "multiplecharacters": "Multiple Characters",
    "roleplay": "Roleplay",
    "fantasy": "Fantasy",
    "romance": "Romance",
    "horror": "Horror",
    "anime": "Anime",
    "game": "Game",
    "female": "Female",
    "male": "Male",
    "nonbinary": "Non-Binary",
}

# Timestamps are stored as integer nanoseconds
NANOS_PER_SECOND = 1_000_000_000

# HTTP defaults
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) Gecko/20100101 Firefox/128.0"
DEFAULT_HTTP_TIMEOUT_SECONDS = 15
DEFAULT_HTTP_RETRY_COUNT = 3
DEFAULT_HTTP_RETRY_BACKOFF_FACTOR = 0.5
RETRY_STATUS_FORCELIST = (500, 502, 503, 504)

# Snapshots
DEFAULT_SNAPSHOT_DIR = "snapshots"
SNAPSHOT_EXTENSION = ".json"

# Display
PROGRESS_REFRESH_RATE = 10
