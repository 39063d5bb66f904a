"""
Media Store - file uploads and URL signing on S3-compatible storage.
"""
