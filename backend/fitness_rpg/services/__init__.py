"""Services package.

Services are imported from their modules directly (``schemas`` depends on
``services.leveling``, and the timer service depends on ``schemas``).
"""
