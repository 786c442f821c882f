"""Constants and configuration for the markview viewer."""

class ViewerConstants:
    """Central configuration constants for the viewer."""

    # Scrolling
    SCROLL_STEP = 5  # Rows moved per mouse wheel notch

    # Mouse timing
    DOUBLE_CLICK_TIMEOUT = 0.4  # Max seconds between the two clicks of a double click
    DOUBLE_CLICK_DISTANCE = 1  # Max column drift between the two clicks

    # Expandable blocks
    DEFAULT_MAX_LINES = 3  # Lines shown while an expandable block is collapsed

    # Minimap
    MINIMAP_WIDTH = 10  # Glyph columns in the minimap
    MINIMAP_MIN_CONTENT_WIDTH = 10  # Content columns that must remain beside the minimap

    # Main loop
    TICK_INTERVAL = 0.05  # select() timeout so pending clicks resolve promptly
    RELOAD_POLL_INTERVAL = 1.0  # Seconds between mtime checks of the open file

    # Keyboard timing
    ESCAPE_SEQUENCE_TIMEOUT = 0.01  # Timeout for collecting multi-character escape sequences (seconds)

    # Resize handling
    RESIZE_PIPE_MARKER = b'R'  # Byte written to pipe to signal resize

    # Status line
    MODE_NORMAL_LABEL = " NORMAL "
    MODE_DRAG_LABEL = " DRAG "
    HELP_HINT = "q quit  r reload  ? help"
