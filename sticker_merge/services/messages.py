"""
User-facing message templates for the merge dialogue.
"""

WELCOME = "\n".join(
    [
        "Hi! Send me the sticker sets to merge, one per message:",
        "- a short name: cats_pack_2024",
        "- a link: t.me/addstickers/cats_pack_2024",
        "- or forward any sticker from the set.",
        "Send /done when the list is complete.",
        "To build a set from custom emoji instead, use /tag_mode (only the emoji you send)"
        " or /tag_mode_full (every emoji of their sets), then /tag_done.",
        "The bot suffix of the short name is added automatically.",
    ]
)
CANCELLED = "Reset. Use /start to begin again."
IDLE_HINT = "Use /start to merge sticker sets or /tag_mode to collect custom emoji."
UNKNOWN_COMMAND = "Unknown command. Use /start, /tag_mode or /cancel."

SOURCE_ADDED = "Added: {identifier}. More? Send /done to continue."
SOURCE_UNRECOGNIZED = (
    "That does not look like a set name or link. Send a short name (e.g. cats_pack_2024),"
    " a t.me/addstickers/<name> link or a sticker from the set."
)
FORWARDED_WITHOUT_SET = "This sticker has no public set name. Send a t.me/addstickers/<name> link or the short name."
NO_SOURCES_YET = "Add at least one set first."
SOURCE_FETCH_FAILED = "Could not load set {identifier}: {reason}."
NO_SOURCES_RESOLVED = "Could not load any of the sets. Use /start to try again."
DONE_OUT_OF_PLACE = "Nothing to finish right now."

TAG_MODE_ITEMS = "Custom emoji mode (only what you send): send messages with the emoji, then /tag_done."
TAG_MODE_FULL = (
    "Custom emoji mode (full sets): send messages with the emoji, then /tag_done."
    " Every emoji of their sets will be included."
)
TAGS_ADDED = "Emoji added: +{added}. Total: {total}. Send more or /tag_done."
NO_TAGS_IN_MESSAGE = "No custom emoji found in that message. Send text with the emoji or /tag_done."
NO_TAGS_YET = "No emoji collected yet. Send text with custom emoji and repeat /tag_done."
TAG_DONE_OUT_OF_PLACE = "Start with /tag_mode or /tag_mode_full and send some emoji first."
TAG_RESOLUTION_FAILED = "Could not resolve some emoji:\n- {errors}"
TAGS_COLLECTED = "Collected {count} emoji. Enter the title of the new set."

SOURCES_SUMMARY = "Total stickers: {total}. Page {page}/{pages}.\n{body}"
EMPTY_LISTING = "(empty)"
PREVIOUS_PAGE = "◀️"
NEXT_PAGE = "▶️"
MODE_RANGES_BUTTON = "Pick by numbers"
MODE_TAGS_BUTTON = "Pick by emoji"
MODE_RANGES_CHOSEN = "Selection by numbers and ranges (e.g. 1-5,7,10-12). Send your selection."
MODE_TAGS_CHOSEN = "Selection by emoji (e.g. :😀,😂). Send your selection."
MODE_OUT_OF_PLACE = "Load some sets with /start first."

SELECTION_ERRORS = "Errors:\n- {errors}"
SELECTION_EMPTY = "Nothing matched that selection. Try again."
SELECTION_ACCEPTED = "Selected {count}. Enter the title of the new set."

SHORT_NAME_PROMPT = "Now choose a short name (latin letters, digits, underscores)."
SHORT_NAME_INVALID = "The short name needs at least one latin letter, digit or underscore."
CREATION_STARTED = "Creating sets from {count} item(s)..."
CREATION_FAILED = "Could not create the sets: {reason}"

REPORT_LINE = "{title} [{format}]: added {added}/{total}{skipped}\n{link}"
REPORT_SKIPPED = ", skipped {count}"
REPORT_CREATE_FAILED = "Could not create: {reason}"
NOTHING_CREATED = "Nothing was created."
STICKER_LINK = "t.me/addstickers/{short_name}"
EMOJI_LINK = "t.me/addemoji/{short_name}"

TEXT_OUT_OF_PLACE = "Pick the selection mode with the buttons above."
CREATION_IN_PROGRESS = "Still creating your sets, please wait."
TITLE_EMPTY = "The title cannot be empty. Enter the title of the new set."
