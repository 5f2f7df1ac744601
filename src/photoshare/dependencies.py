"""
Dependency Injection for S3 Client

The AsyncS3Client is created once in the application lifespan and kept on
``app.state``; route handlers receive it through ``Depends(get_s3_client)``.
"""

from fastapi import Request

from photoshare.s3_service import AsyncS3Client


def get_s3_client(request: Request) -> AsyncS3Client:
    """Dependency injection function for AsyncS3Client.

    Example:
        @router.post("/upload")
        async def upload(file: UploadFile, s3: AsyncS3Client = Depends(get_s3_client)):
            await s3.upload_fileobj(file.file, f"uploads/{file.filename}")
    """
    client = getattr(request.app.state, "s3_client", None)
    if client is None:
        raise RuntimeError("S3 client not initialized. Make sure the application lifespan is properly configured.")
    return client
