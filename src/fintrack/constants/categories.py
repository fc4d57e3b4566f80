"""
Default categories installed for a new owner, with their display colours.
Clients resolve these by name, so renaming one is a breaking change.
"""

DEFAULT_CATEGORIES = [
    ("Food", "#FF9500"),
    ("Transportation", "#5AC8FA"),
    ("Entertainment", "#AF52DE"),
    ("Shopping", "#FF2D55"),
    ("Utilities", "#FFCC00"),
    ("Housing", "#34C759"),
    ("Income", "#30B0C7"),
    ("Other", "#8E8E93"),
]

# Category used when an account is opened with a non-zero starting balance
OPENING_BALANCE_CATEGORY = ("Opening Balance", "#636366")

DEFAULT_ACCOUNT_NAME = "Checking"
