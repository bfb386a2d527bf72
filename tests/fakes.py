# Test doubles for the storage side

from db.storage import Bucket, StorageError


class FailingBucket(Bucket):
    """Accepts `succeed` uploads, then fails every later one."""

    def __init__(self, succeed: int = 0):
        self.succeed = succeed
        self.uploaded: list[str] = []

    def upload(self, path, data, content_type):
        if len(self.uploaded) >= self.succeed:
            raise StorageError(f"Upload of {path} failed: 500")
        self.uploaded.append(path)
        return f"https://cdn.example.test/{path}"

    def delete(self, paths):
        raise StorageError("delete not supported")
