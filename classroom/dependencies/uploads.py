from typing import List, Optional

from fastapi import UploadFile

from classroom.services.attachments import IncomingFile


async def read_uploads(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    """Read multipart uploads into memory, skipping empty file parts."""
    incoming = []
    for upload in files or []:
        if not upload.filename:
            continue
        data = await upload.read()
        incoming.append(IncomingFile(file_name=upload.filename, data=data, content_type=upload.content_type))
    return incoming
