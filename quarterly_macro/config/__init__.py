"""
Configuration loading and validation for API credentials, endpoints and paths.

Provides strongly typed settings objects resolved from environment variables
with a .env file fallback, validated upfront.
"""
