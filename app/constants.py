import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.environ.get('CATALOG_CONFIG_DIR', os.path.join(APP_DIR, 'config'))
DB_FILE = os.path.join(CONFIG_DIR, 'catalog.db')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')

CATALOG_DB = os.environ.get('DATABASE_URL', 'sqlite:///' + DB_FILE)

# Providers
TMDB_BASE_URL = 'https://api.themoviedb.org/3'
TMDB_IMAGE_BASE_URL = 'https://image.tmdb.org/t/p/w500'
WATCHMODE_BASE_URL = 'https://api.watchmode.com/v1'
NETFLIX_SOURCE_ID = 203

# Region / jurisdictions
CATALOG_REGION = 'UK'
PRIMARY_JURISDICTION = 'GB'
SECONDARY_JURISDICTION = 'US'

# Canonical BBFC ratings, most permissive first
RATING_U = 'U'
RATING_PG = 'PG'
RATING_12 = '12'
RATING_15 = '15'
RATING_18 = '18'
BBFC_RATINGS = [RATING_U, RATING_PG, RATING_12, RATING_15, RATING_18]
DEFAULT_RATING = RATING_15

UNKNOWN_LANGUAGE = 'Unknown'

CONTENT_TYPE_MOVIE = 'movie'
CONTENT_TYPE_TV_SERIES = 'tv_series'
CONTENT_TYPE_TV_MINISERIES = 'tv_miniseries'
CONTENT_TYPE_TV_MOVIE = 'tv_movie'
CONTENT_TYPE_TV_SPECIAL = 'tv_special'
CONTENT_TYPES = [
    CONTENT_TYPE_MOVIE,
    CONTENT_TYPE_TV_SERIES,
    CONTENT_TYPE_TV_MINISERIES,
    CONTENT_TYPE_TV_MOVIE,
    CONTENT_TYPE_TV_SPECIAL,
]
# Content types whose metadata comes from the film endpoint
FILM_SHAPED_CONTENT_TYPES = [CONTENT_TYPE_MOVIE, CONTENT_TYPE_TV_MOVIE]

# Refresh states
STATUS_PENDING = 'pending'
STATUS_UPDATING = 'updating'
STATUS_COMPLETED = 'completed'
STATUS_FAILED = 'failed'
REFRESH_STATUSES = [STATUS_PENDING, STATUS_UPDATING, STATUS_COMPLETED, STATUS_FAILED]

SORT_RELEVANCE = 'relevance'
SORT_YEAR_ASC = 'year-asc'
SORT_YEAR_DESC = 'year-desc'
SORT_TITLE_ASC = 'title-asc'
SORT_TITLE_DESC = 'title-desc'
SORT_OPTIONS = [SORT_RELEVANCE, SORT_YEAR_ASC, SORT_YEAR_DESC, SORT_TITLE_ASC, SORT_TITLE_DESC]

# Genre filter synonyms
GENRE_SYNONYMS = {
    'Sci-Fi': ['Sci-Fi', 'Science Fiction', 'Sci-Fi & Fantasy'],
    'Science Fiction': ['Science Fiction', 'Sci-Fi', 'Sci-Fi & Fantasy'],
}

MAX_CAST_MEMBERS = 10
DEFAULT_PAGE_SIZE = 24
MAX_PAGE_SIZE = 100

DEFAULT_SETTINGS = {
    "catalog": {
        "region": CATALOG_REGION,
        "primary_jurisdiction": PRIMARY_JURISDICTION,
        "secondary_jurisdiction": SECONDARY_JURISDICTION,
        "source_id": NETFLIX_SOURCE_ID,
        "watchmode_region": "GB",
        "freshness_hours": 24,
        "check_interval_minutes": 60,
        "max_pages": 50,
        "page_size": 250,
        "batch_size": 10,
        "batch_delay_seconds": 1.0,
        "lease_hours": 6,
        "rerate_target": RATING_18,
    },
    "apis": {
        "tmdb_api_key": "",
        "watchmode_api_key": "",
        "timeout": 15,
    },
    "rate_limits": {
        "tmdb": {"rate": 4.0, "burst": 10},
        "watchmode": {"rate": 1.0, "burst": 1},
    },
    "server": {
        "host": "0.0.0.0",
        "port": 5000,
    },
}
