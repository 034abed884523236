"""
Routers module - API endpoint handlers organized by feature.

- webhook: LINE Messaging API webhook (text, location, save postbacks)
"""
