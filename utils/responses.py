from fastapi.responses import JSONResponse


def message_response(message, status=200, **extra):
    return JSONResponse(
        status_code=status,
        content={"message": message, **extra},
    )


def error_response(error, status=500):
    return JSONResponse(
        status_code=status,
        content={"error": error},
    )
