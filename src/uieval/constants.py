"""Project constants."""

PROJECT_NAME = "uieval"
RESULT_FORMAT_VERSION = "1.0.0"

DEFAULT_CLASSES = ("Button", "Input", "Radio", "Dropdown")
DEFAULT_IOU_THRESHOLD = 0.5
DEFAULT_DECIMALS = 3

MACRO_ROW_LABEL = "Macro"
