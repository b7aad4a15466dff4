from .user import User
from .interview import Interview
from .user_setting import UserSetting
from .conversation import Conversation
from .candidate import CandidateNote, CandidateProfile
