"""Display settings for Win Log.

The four toggles are persisted inside the main data document under
camelCase keys (the format the browser version wrote). No frontend
dependency.
"""

from dataclasses import dataclass, fields

# Field name -> key in the persisted document
WIRE_KEYS = {
    "allow_historical_entries": "allowHistoricalEntries",
    "show_play_dates": "showPlayDates",
    "show_game_destructive_actions": "showGameDestructiveActions",
    "show_item_edit_buttons": "showItemEditButtons",
}


@dataclass
class Settings:
    """Presentation and feature flags. They never gate core operations."""
    allow_historical_entries: bool = True
    show_play_dates: bool = True
    show_game_destructive_actions: bool = True
    show_item_edit_buttons: bool = True


DEFAULTS = {WIRE_KEYS[f.name]: f.default for f in fields(Settings)}


def settings_from_dict(data):
    """Build Settings from a document dict.

    Merges with DEFAULTS so missing keys get default values.
    Unknown keys and non-boolean values are ignored.
    """
    result = Settings()
    if not isinstance(data, dict):
        return result
    for attr, key in WIRE_KEYS.items():
        value = data.get(key)
        if isinstance(value, bool):
            setattr(result, attr, value)
    return result


def settings_to_dict(settings):
    """Return the settings as a dict keyed by wire names."""
    return {key: getattr(settings, attr) for attr, key in WIRE_KEYS.items()}


def resolve_key(name):
    """Map a wire key or field name to the Settings field name, or None."""
    if name in WIRE_KEYS:
        return name
    for attr, key in WIRE_KEYS.items():
        if key == name:
            return attr
    return None
