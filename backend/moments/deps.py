from moments.services.store import BeanieReminderStore
from moments.utils.firebase import FirebasePushSender


# Common dependencies used across routers; tests override them
def get_store() -> BeanieReminderStore:
    return BeanieReminderStore()


def get_push_sender() -> FirebasePushSender:
    return FirebasePushSender()
