"""Thread use cases."""

from .close_topic import CloseTopicRequest, CloseTopicResponse, CloseTopicUseCase
from .create_reply import CreateReplyRequest, CreateReplyResponse, CreateReplyUseCase
from .delete_reply import DeleteReplyRequest, DeleteReplyResponse, DeleteReplyUseCase
from .get_thread import (
    GetThreadRequest,
    GetThreadUseCase,
    ReactionGroupItem,
    ReplyItem,
    ThreadResponse,
)
from .open_topic import OpenTopicRequest, OpenTopicResponse, OpenTopicUseCase
from .toggle_reaction import (
    ToggleReactionRequest,
    ToggleReactionResponse,
    ToggleReactionUseCase,
)

__all__ = [
    "CloseTopicRequest",
    "CloseTopicResponse",
    "CloseTopicUseCase",
    "CreateReplyRequest",
    "CreateReplyResponse",
    "CreateReplyUseCase",
    "DeleteReplyRequest",
    "DeleteReplyResponse",
    "DeleteReplyUseCase",
    "GetThreadRequest",
    "GetThreadUseCase",
    "OpenTopicRequest",
    "OpenTopicResponse",
    "OpenTopicUseCase",
    "ReactionGroupItem",
    "ReplyItem",
    "ThreadResponse",
    "ToggleReactionRequest",
    "ToggleReactionResponse",
    "ToggleReactionUseCase",
]
