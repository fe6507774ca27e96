import json
import logging

from dapr.clients import DaprClient

from student_service.config import settings

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publishes domain events on the Dapr pub/sub component."""

    def __init__(self, enabled: bool = None, pubsub_name: str = None, client_factory=DaprClient):
        self.enabled = settings.EVENTS_ENABLED if enabled is None else enabled
        self.pubsub_name = pubsub_name or settings.DAPR_PUBSUB_NAME
        self.client_factory = client_factory

    def publish(self, topic: str, data: dict) -> bool:
        if not self.enabled:
            logger.debug(f"Events disabled, not publishing {topic}")
            return False

        try:
            with self.client_factory() as client:
                client.publish_event(
                    pubsub_name=self.pubsub_name,
                    topic_name=topic,
                    data=json.dumps(data, default=str),
                    data_content_type="application/json",
                )
            logger.info(f"Event {topic} published")
            return True
        except Exception as e:
            logger.error(f"Error publishing event {topic}: {e}")
            return False

    def quiz_completed(self, payload: dict) -> bool:
        return self.publish(settings.QUIZ_COMPLETED_TOPIC, payload)
