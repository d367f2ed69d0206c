"""Application constants."""

USER_AGENT = "bifrost/0.3 (+https://github.com/bifrost-data/bifrost)"
FLOWS = ("atlas", "finly")

GEONAMES_ZIP_URL = "http://download.geonames.org/export/zip/allCountries.zip"
GEONAMES_MEMBER = "allCountries.txt"
IFSC_RELEASE_URL = "https://api.github.com/repos/razorpay/ifsc/releases/latest"
IFSC_CSV_ASSET = "IFSC.csv"
IFSC_CATALOG_ASSET = "banks.json"

ATLAS_DB_PATH = "atlas/data/atlas.db"
FINLY_DB_PATH = "finly/data/finly.db"
FINLY_VERSION_FILE = "tools/finly/version.txt"
VERSION_FILE_PREFIX = "TAG_VERSION="

EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
EXIT_CANCELED = 130

JSON_LOG_FIELDS = (
    "timestamp",
    "level",
    "run_id",
    "flow",
    "stage",
    "event",
    "status",
    "error_code",
    "cause",
    "rows_out",
    "current_version",
    "latest_version",
    "duration_ms",
    "message",
)
