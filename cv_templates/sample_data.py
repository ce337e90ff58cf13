"""Sample CV record used for template previews and the offline LLM stub."""

from typing import Any, Dict

SAMPLE_CV: Dict[str, Any] = {
    "name": "John Smith",
    "title": "Senior Software Engineer",
    "email": "john.smith@example.com",
    "phone": "+1 (555) 123-4567",
    "location": "Seattle, WA",
    "summary": (
        "Software engineer with eight years of full-stack and cloud experience. "
        "Comfortable owning services end to end, from schema design to on-call, "
        "and happiest when mentoring a small team through a hard migration."
    ),
    "experience": [
        {
            "role": "Senior Software Engineer",
            "company": "Tech Corp Inc.",
            "dates": "Jan 2020 - Present",
            "bullets": [
                "Led the move from a monolith to microservices serving millions of users",
                "Mentored six junior developers and introduced a code review checklist",
                "Built the CI/CD pipeline on Docker and Kubernetes",
            ],
        },
        {
            "role": "Software Engineer",
            "company": "StartUp Solutions",
            "dates": "Jun 2017 - Dec 2019",
            "bullets": [
                "Designed REST APIs in Node.js and Express for the core product",
                "Introduced automated testing across the backend services",
            ],
        },
        {
            "role": "Junior Developer",
            "company": "Digital Agency LLC",
            "dates": "Aug 2015 - May 2017",
            "bullets": [
                "Shipped responsive React and TypeScript sites for agency clients",
                "Tuned slow database queries behind the busiest client pages",
            ],
        },
    ],
    "education": [
        {
            "degree": "Bachelor of Science in Computer Science",
            "school": "University of Technology",
            "year": "2015",
        },
        {
            "degree": "AWS Certified Solutions Architect",
            "school": "Amazon Web Services",
            "year": "2021",
        },
    ],
    "skills": [
        "JavaScript",
        "TypeScript",
        "React",
        "Node.js",
        "Python",
        "AWS",
        "Docker",
        "Kubernetes",
        "PostgreSQL",
        "MongoDB",
        "Git",
        "Agile/Scrum",
    ],
}
