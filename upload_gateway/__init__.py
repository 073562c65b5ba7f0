"""Multipart upload gateway.

Issues S3 multipart upload sessions and presigned part URLs so clients can
send large objects straight to storage.
"""
