from .user import User
from .course import Course, CourseVideo, VideoLesson
from .enrollment import Enrollment, LessonProgress, Payment
from .review import Review
from .ad import Ad
