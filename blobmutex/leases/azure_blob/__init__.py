from .azure_blob_backend import BlobLeaseBackend as BlobLeaseBackend
