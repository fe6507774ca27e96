import json

from student_service.services.event_publisher import EventPublisher


class FakeDaprClient:
    published = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def publish_event(self, **kwargs):
        FakeDaprClient.published.append(kwargs)


class DownDaprClient(FakeDaprClient):
    def publish_event(self, **kwargs):
        raise ConnectionError("sidecar not reachable")


def test_publish_quiz_completed():
    FakeDaprClient.published = []
    publisher = EventPublisher(enabled=True, pubsub_name="pubsub", client_factory=FakeDaprClient)

    assert publisher.quiz_completed({"quiz_id": "q1", "score": 80}) is True

    event = FakeDaprClient.published[0]
    assert event["pubsub_name"] == "pubsub"
    assert event["topic_name"] == "quiz_completed"
    assert event["data_content_type"] == "application/json"
    assert json.loads(event["data"]) == {"quiz_id": "q1", "score": 80}


def test_disabled_publisher_sends_nothing():
    FakeDaprClient.published = []
    publisher = EventPublisher(enabled=False, client_factory=FakeDaprClient)

    assert publisher.publish("quiz_completed", {"quiz_id": "q1"}) is False
    assert FakeDaprClient.published == []


def test_publish_failure_is_reported():
    publisher = EventPublisher(enabled=True, client_factory=DownDaprClient)

    assert publisher.publish("quiz_completed", {"quiz_id": "q1"}) is False
