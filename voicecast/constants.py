"""All magic numbers and configuration constants."""

# Polly voices accepted as script tags (case-sensitive proper nouns)
VOICE_IDS = (
    "Salli",
    "Joanna",
    "Kendra",
    "Ivy",
    "Kimberly",
    "Kevin",
    "Matthew",
    "Justin",
    "Joey",
)

SCRIPT_DELIMITER = "@"                 # starts each speaker cue
WORK_DIR = "/mnt/fs"                   # local scratch root (EFS mount in Lambda)
OUTPUT_FILE_NAME = "output"            # base name of the concatenated artifact
OUTPUT_FORMAT = "mp3"                  # Polly OutputFormat for segments and artifact
OUTPUT_BITRATE = "192k"                # bitrate for lossy exports
SYNTHESIS_ENGINE = "neural"
DEFAULT_GAP_SECONDS = 0.0              # silence between segments
SUBMIT_PACING_SECONDS = 1.1            # delay between task submissions
POLL_PACING_SECONDS = 0.2              # delay between status polls within a batch
POLL_BATCH_SECONDS = 5.0               # delay before each poll batch
POLL_TIMEOUT_SECONDS = 840.0           # give up on unsettled tasks after this long
LOG_LEVEL = "INFO"

# Polly OutputFormat -> (segment extension, artifact export format)
SEGMENT_EXTENSIONS = {"mp3": "mp3", "ogg_vorbis": "ogg", "pcm": "pcm"}
EXPORT_FORMATS = {"mp3": "mp3", "ogg_vorbis": "ogg", "pcm": "wav"}
CONTENT_TYPES = {"mp3": "audio/mpeg", "ogg": "audio/ogg", "wav": "audio/wav"}
PCM_SAMPLE_RATE = 16000                # Polly neural PCM: signed 16-bit mono

S3_DELETE_BATCH = 1000                 # DeleteObjects limit per request
S3_MAX_LIST_KEYS = 10_000_000          # upper bound on keys listed under one prefix
VERSION = "0.1.0"
