"""
Chat application backend: identity core and chat records.
"""
