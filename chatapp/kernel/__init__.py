"""
Kernel Layer

- Identity Core (credentials, sessions, verification secrets)
- Models (users, chats, messages)
- Stores (identity record persistence)
"""
