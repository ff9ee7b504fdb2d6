from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
from typing import Dict, Iterable

from pickup_api.exceptions import DatabaseError
from pickup_api.logging_config import get_child_logger

logger = get_child_logger("crud.region")

REGION_NAMES_QUERY = "SELECT c.id, c.name FROM c WHERE ARRAY_CONTAINS(@ids, c.id)"


async def get_region_names(
    container: ContainerProxy, region_ids: Iterable[str]
) -> Dict[str, str]:
    """
    Resolve region IDs to names in a single query. Unknown IDs are omitted.
    """
    ids = sorted({region_id for region_id in region_ids if region_id})
    if not ids:
        return {}

    try:
        return {
            item["id"]: item["name"]
            async for item in container.query_items(
                query=REGION_NAMES_QUERY,
                parameters=[{"name": "@ids", "value": ids}],
            )
        }
    except CosmosHttpResponseError as e:
        logger.error(
            f"Cosmos DB error resolving region names: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error resolving region names: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e
