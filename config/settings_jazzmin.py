# File: config/settings_jazzmin.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from .settings import PONTAJ_CODENAME, PONTAJ_VERSION

JAZZMIN_SETTINGS = {
    # Branding
    "site_title": "Pontaj Back Office",
    "site_header": "Pontaj Back Office",
    "site_brand": "Pontaj",
    "welcome_sign": f'Welcome to Pontaj Back Office v{PONTAJ_VERSION} "{PONTAJ_CODENAME}"',
    "copyright": f"Pontaj {PONTAJ_VERSION}",

    # Quick nav
    "topmenu_links": [],
    "usermenu_links": [
        {"model": "auth.user"},
    ],
    "search_model": ["stores.Employee", "stores.Store"],
    "icons": {
        # Stores & staff
        "stores": "fa-solid fa-store",
        "stores.zone": "fa-solid fa-map-location-dot",
        "stores.store": "fa-solid fa-shop",
        "stores.employee": "fa-solid fa-id-card",
        "stores.profile": "fa-solid fa-user-gear",
        "stores.delegation": "fa-solid fa-arrow-right-arrow-left",
        "stores.transfer": "fa-solid fa-truck-moving",

        # Timesheets
        "timesheets": "fa-solid fa-clock",
        "timesheets.timesheet": "fa-solid fa-table-cells",
        "timesheets.absencetype": "fa-solid fa-umbrella-beach",
        "timesheets.holidaycalendar": "fa-solid fa-calendar-day",

        # Django built-ins
        "auth": "fa-solid fa-shield-halved",
        "auth.user": "fa-solid fa-user-lock",
        "auth.group": "fa-solid fa-users-rectangle",
    },

    # Sidebar ordering within the app
    "order_with_respect_to": [
        # Timesheets: Timesheet > AbsenceType > HolidayCalendar
        "timesheets",
        "timesheets.timesheet",
        "timesheets.absencetype",
        "timesheets.holidaycalendar",
        # Stores: Employee > Delegation > Transfer > Store > Zone > Profile
        "stores",
        "stores.employee",
        "stores.delegation",
        "stores.transfer",
        "stores.store",
        "stores.zone",
        "stores.profile",

        # Django built-ins (always at the end)
        "auth",
        "auth.user",
        "auth.group",
    ],

    # Hide historical models from menu
    "hide_models": [
        "stores.historicalemployee",
        "stores.historicaldelegation",
        "stores.historicaltransfer",
        "timesheets.historicalabsencetype",
        "timesheets.historicalholidaycalendar",
        "timesheets.historicaltimesheet",
    ],

    # Quality of life
    "related_modal_active": True,
    "changeform_format": "collapsible",
    "language_chooser": True,

    # UI builder
    "show_ui_builder": False,
}

JAZZMIN_UI_TWEAKS = {
    # Theme
    "theme": "darkly",
    "dark_mode_theme": "darkly",

    # Navbar styling
    "navbar": "navbar-dark",
    "no_navbar_border": True,

    # Layout
    "footer_fixed": True,
    "sidebar_fixed": True,

    # Sidebar
    "accent": "accent-orange",
    "sidebar": "sidebar-dark-orange",
    "sidebar_nav_small_text": True,
    "sidebar_nav_child_indent": True,
    "sidebar_nav_compact_style": True,
    "sidebar_nav_flat_style": True,

    "button_classes": {
        "primary": "btn-primary",
        "secondary": "btn-secondary",
        "info": "btn-outline-info",
        "warning": "btn-warning",
        "danger": "btn-danger",
        "success": "btn-success",
    },

    # Actions
    "actions_sticky_top": True,
}
