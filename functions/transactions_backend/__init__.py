"""
Backend package for the transactions API.

A FastAPI service exposing list, upsert and delete over each signed-in
user's transactions in Firestore, authenticated with Firebase ID tokens.
"""
