"""Personal bookmark organizer: sections, groups, tagged links, drag reordering."""

__version__ = "0.1.0"
