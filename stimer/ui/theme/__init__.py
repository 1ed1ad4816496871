"""Theme palettes and stylesheet generation."""

THEMES = {
    "Light": {
        "bg": "#f5f5f7",
        "panel": "#ffffff",
        "text": "#1d1d1f",
        "muted": "#6e6e73",
        "accent": "#0a84ff",
        "accent_text": "#ffffff",
        "border": "#d2d2d7",
        "danger": "#d70015",
    },
    "Dark": {
        "bg": "#1c1c1e",
        "panel": "#2c2c2e",
        "text": "#f2f2f7",
        "muted": "#98989d",
        "accent": "#0a84ff",
        "accent_text": "#ffffff",
        "border": "#3a3a3c",
        "danger": "#ff453a",
    },
}

SIZES = {
    "face": 36,
    "mini_face": 22,
    "label": 11,
    "padding": 8,
}


def build_stylesheet(theme_name):
    t = THEMES.get(theme_name, THEMES["Light"])
    return f"""
        QWidget {{
            background-color: {t["bg"]};
            color: {t["text"]};
            font-size: {SIZES["label"]}pt;
        }}
        QGroupBox {{
            background-color: {t["panel"]};
            border: 1px solid {t["border"]};
            border-radius: 6px;
            margin-top: 12px;
            padding: {SIZES["padding"]}px;
        }}
        QGroupBox::title {{
            subcontrol-origin: margin;
            left: 8px;
            color: {t["muted"]};
        }}
        QLabel#timeFace {{
            background-color: transparent;
            font-size: {SIZES["face"]}pt;
            font-weight: bold;
        }}
        QLabel#miniFace {{
            background-color: transparent;
            font-size: {SIZES["mini_face"]}pt;
            font-weight: bold;
        }}
        QPushButton {{
            background-color: {t["panel"]};
            border: 1px solid {t["border"]};
            border-radius: 4px;
            padding: 4px 10px;
        }}
        QPushButton#primary {{
            background-color: {t["accent"]};
            color: {t["accent_text"]};
            border: none;
        }}
        QPushButton#danger {{
            color: {t["danger"]};
        }}
        QListWidget {{
            background-color: {t["panel"]};
            border: 1px solid {t["border"]};
        }}
    """
