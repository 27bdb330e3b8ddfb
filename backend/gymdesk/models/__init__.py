from .auth import User, SessionToken, LoginAttempt
from .members import Member
from .memberships import MembershipPlan, Membership
from .payments import Payment, Sequence
from .attendance import Attendance
from .workouts import WorkoutPlan, MemberWorkout
from .progress import ProgressRecord
from .gym import GymSettings, GymImage
from .notifications import Notification

__all__ = [
    'User', 'SessionToken', 'LoginAttempt',
    'Member',
    'MembershipPlan', 'Membership',
    'Payment', 'Sequence',
    'Attendance',
    'WorkoutPlan', 'MemberWorkout',
    'ProgressRecord',
    'GymSettings', 'GymImage',
    'Notification',
]
