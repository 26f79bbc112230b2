"""이벤트 유형 상수"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # dataset
    DATASET_OPENED = "dataset_opened"
    DATASET_CLOSED = "dataset_closed"

    # ingestion
    INGESTION_STAGE_COMPLETED = "ingestion_stage_completed"
    INGESTION_COMPLETED = "ingestion_completed"
    INGESTION_SKIPPED = "ingestion_skipped"

    # search
    SEARCH_FINISHED = "search_finished"
