# Importing every model registers its table with SQLAlchemy
from newton.models.user import User  # noqa
from newton.models.upload import Upload  # noqa
from newton.models.note import Note  # noqa
from newton.models.flashcard import Flashcard  # noqa
from newton.models.study import StudySession, StudyStats  # noqa
from newton.models.friendship import Friendship  # noqa
from newton.models.room import Room, RoomTag, RoomParticipant  # noqa
from newton.models.subscription import Subscription, SubscriptionEvent  # noqa
