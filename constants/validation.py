"""
Validation Constants

Limits applied to form input before it is stored.
"""

# Maximum field lengths for security
MAX_LENGTHS = {
    'name': 100,
    'description': 5000,
    'source_link': 500,
    'source_text': 200,
}

# Maximum number of lines kept from an ingredients/steps textarea
MAX_LIST_LINES = 200
