import logging
from dataclasses import dataclass

from django.utils import timezone

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ('order', 'product', 'customer', 'newsletter', 'review')


@dataclass(frozen=True)
class NotificationEvent:
    type: str
    message: str
    link: str

    def __post_init__(self):
        if self.type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {self.type}")


class MongoNotificationSink:
    """
    Writes admin notifications to the `notifications` collection.

    `emit` is fire-and-forget: a failed insert is logged and never reaches
    the caller's flow.
    """
    def __init__(self, db):
        self.collection = db['notifications']

    def emit(self, event: NotificationEvent):
        try:
            self.collection.insert_one({
                'type': event.type,
                'message': event.message,
                'link': event.link,
                'read': False,
                'createdAt': timezone.now(),
            })
        except Exception as e:
            logger.error(f"Failed to record notification '{event.message}': {e}")

    def recent(self, limit=50):
        return list(self.collection.find().sort('createdAt', -1).limit(limit))

    def counts(self):
        result = {t: 0 for t in NOTIFICATION_TYPES}
        for row in self.collection.aggregate([{'$group': {'_id': '$type', 'count': {'$sum': 1}}}]):
            if row['_id'] in result:
                result[row['_id']] = row['count']
        return result
