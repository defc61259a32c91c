from .activity import ActivityEvent, ActivityStatus
from .face import FaceDescriptorRequest, FaceMatch, FaceRegisterRequest, FaceRemoveRequest, FaceVerifyResponse
from .person import AuthenticatedUser, Person, PersonCreate, PersonUpdate, PersonView
from .rfid import RfidAssociateRequest, RfidCard, RfidRead, RfidUidRequest

__all__ = [
    "ActivityEvent",
    "ActivityStatus",
    "AuthenticatedUser",
    "FaceDescriptorRequest",
    "FaceMatch",
    "FaceRegisterRequest",
    "FaceRemoveRequest",
    "FaceVerifyResponse",
    "Person",
    "PersonCreate",
    "PersonUpdate",
    "PersonView",
    "RfidAssociateRequest",
    "RfidCard",
    "RfidRead",
    "RfidUidRequest",
]
