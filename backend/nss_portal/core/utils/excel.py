from io import BytesIO
from fastapi import UploadFile
from fastapi.responses import StreamingResponse
import pandas as pd

from nss_portal.response import CustomHTTPException


async def read_excel(file: UploadFile) -> pd.DataFrame:
    """Reads an uploaded CSV or Excel file and returns a DataFrame."""
    contents = await file.read()

    filename = (file.filename or "").lower()
    if filename.endswith(".csv"):
        df = pd.read_csv(BytesIO(contents), keep_default_na=False)
    elif filename.endswith((".xls", ".xlsx")):
        df = pd.read_excel(BytesIO(contents), keep_default_na=False)
    else:
        raise CustomHTTPException(400, "Unsupported file format")
    return df


def dataframe_response(
    df: pd.DataFrame, filename: str, file_format: str, sheet_name: str = "Sheet1"
) -> StreamingResponse:
    """Streams a DataFrame back as a CSV or XLSX attachment."""
    output = BytesIO()
    if file_format == "csv":
        df.to_csv(output, index=False)
        media_type = "text/csv"
    else:
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)
        media_type = (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    output.seek(0)

    return StreamingResponse(
        output,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}.{file_format}"'
        },
    )
