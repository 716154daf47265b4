"""Static platform knowledge embedded in the assistant's system prompt."""

PLATFORM_KNOWLEDGE: dict = {
    "features": {
        "training_scheduler": {
            "description": "Schedule and manage training sessions",
            "location": "Training Scheduler menu",
            "actions": ["create training", "edit training", "add participants", "view calendar"],
            "guide": (
                "To schedule a training: 1) Go to Training Scheduler, 2) Click 'Create Training', "
                "3) Select course, 4) Set date/time, 5) Add participants"
            ),
        },
        "employee_management": {
            "description": "Manage employee records and information",
            "location": "Participants menu",
            "actions": ["add employee", "edit employee", "view employee profile", "manage licenses"],
            "guide": (
                "To add an employee: 1) Go to Participants, 2) Click 'Add Employee', "
                "3) Fill in personal details, 4) Set employment info, 5) Save"
            ),
        },
        "course_management": {
            "description": "Create and manage training courses",
            "location": "Courses menu",
            "actions": ["create course", "edit course", "set Code 95 points", "manage sessions"],
            "guide": (
                "To create a course: 1) Go to Courses, 2) Click 'Add Course', 3) Enter course details, "
                "4) Set duration and max participants, 5) Configure Code 95 points if applicable"
            ),
        },
        "certificate_tracking": {
            "description": "Monitor employee certificates and expiry dates",
            "location": "Certificate Expiry menu",
            "actions": ["view expiring certificates", "update certificate status", "generate reports"],
            "guide": (
                "To check expiring certificates: 1) Go to Certificate Expiry, 2) View dashboard, "
                "3) Filter by date range or employee"
            ),
        },
        "reports": {
            "description": "Generate training and compliance reports",
            "location": "Reports menu",
            "actions": ["compliance report", "training cost report", "certificate expiry report"],
            "guide": (
                "To generate reports: 1) Go to Reports, 2) Select report type, "
                "3) Choose date range and filters, 4) Export or view"
            ),
        },
    },
    "common_questions": {
        "How do I schedule a training?": (
            "Go to Training Scheduler -> Create Training -> Select course -> Set date/time -> "
            "Add participants -> Save"
        ),
        "Where can I add employees?": "Go to Participants menu -> Add Employee -> Fill in details -> Save",
        "How do I check expired certificates?": (
            "Go to Certificate Expiry menu to view all certificates with expiry status"
        ),
        "What are Code 95 points?": (
            "Code 95 points are required for professional drivers. Each training can award "
            "Code 95 points. Drivers need 35 points every 5 years."
        ),
    },
    "navigation": {
        "Dashboard": "/",
        "Training Scheduler": "/scheduling",
        "Participants": "/participants",
        "Courses": "/courses",
        "Certifications": "/certifications",
        "Certificate Definitions": "/certificate-definitions",
        "Certificate Expiry": "/certificate-expiry",
        "Reports": "/reports",
        "Notifications": "/communications",
    },
    "terminology": {
        "VCA": "Safety certification required for construction work",
        "BHV": "Emergency response certification",
        "Code 95": "Professional driver qualification points",
        "HDO": "Forklift operation license",
        "Training Session": "Individual training event with date, time, and participants",
        "Course": "Training curriculum that can have multiple sessions",
        "Participant": "Employee enrolled in a training session",
    },
}
