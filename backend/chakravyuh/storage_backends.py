# backend/chakravyuh/storage_backends.py

import os
from storages.backends.s3boto3 import S3Boto3Storage


class PrivateMediaStorage(S3Boto3Storage):
    """
    Storage for registrant uploads (IEEE certificates, payment screenshots).
    Objects are private and only reachable through signed URLs or the
    admin-only streaming endpoints.
    """
    bucket_name = os.getenv('AWS_STORAGE_BUCKET_NAME', 'chakravyuh-uploads')
    location = 'uploads'
    default_acl = 'private'
    file_overwrite = False
    querystring_auth = True
