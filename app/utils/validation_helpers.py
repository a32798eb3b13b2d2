from fastapi import HTTPException, status


def validate_date_range(start, end):
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_kind": "InvalidDateRange",
                "message": "End date must not be before start date",
            },
        )
    return start, end
