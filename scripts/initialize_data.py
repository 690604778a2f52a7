#!/usr/bin/env python3
"""
Populate the configured store with the initial about profile, skill
categories and sample projects.

Usage:
    python3 scripts/initialize_data.py
    PORTFOLIO_MODE=demo python3 scripts/initialize_data.py
"""

import asyncio

from portfolio.config import Settings, configure_logging
from portfolio.services import Services
from portfolio.store import build_store

ABOUT = {
    "bio": (
        "I'm a passionate Full Stack Developer with expertise in building modern web "
        "applications. I specialize in React, Node.js, and cloud technologies, creating "
        "scalable and user-friendly solutions."
    ),
    "experience": [
        {
            "title": "Full Stack Developer",
            "company": "Freelance",
            "period": "2020 - Present",
            "description": "Building custom web applications for clients worldwide",
        },
        {
            "title": "Frontend Developer",
            "company": "Tech Company",
            "period": "2018 - 2020",
            "description": "Developed responsive web applications using React and TypeScript",
        },
    ],
    "profileImageURL": "https://via.placeholder.com/400",
}

SKILLS = [
    {"category": "Frontend", "skills": ["React", "TypeScript", "Next.js", "Tailwind CSS", "Vue.js"]},
    {"category": "Backend", "skills": ["Node.js", "Express", "Python", "Django", "GraphQL"]},
    {"category": "Database", "skills": ["MongoDB", "PostgreSQL", "Firebase", "Redis", "MySQL"]},
    {"category": "DevOps", "skills": ["Docker", "AWS", "CI/CD", "Kubernetes", "Git"]},
    {"category": "Tools", "skills": ["VS Code", "Figma", "Postman", "Jest", "Webpack"]},
]

PROJECTS = [
    {
        "title": "E-Commerce Platform",
        "description": "A full-featured e-commerce platform with payment integration, inventory management, and admin dashboard.",
        "techStack": ["React", "Node.js", "MongoDB", "Stripe", "AWS"],
        "imageURL": "https://via.placeholder.com/600x400",
        "githubURL": "https://github.com/example/ecommerce-platform",
        "liveDemoURL": "https://demo.example.com",
        "featured": True,
    },
    {
        "title": "Task Management App",
        "description": "Collaborative task management application with real-time updates and team features.",
        "techStack": ["Next.js", "Firebase", "TypeScript", "Tailwind CSS"],
        "imageURL": "https://via.placeholder.com/600x400",
        "githubURL": "https://github.com/example/task-manager",
        "liveDemoURL": "https://demo.example.com",
        "featured": True,
    },
    {
        "title": "Social Media Dashboard",
        "description": "Analytics dashboard for managing multiple social media accounts with scheduling features.",
        "techStack": ["React", "GraphQL", "PostgreSQL", "Docker"],
        "imageURL": "https://via.placeholder.com/600x400",
        "githubURL": "https://github.com/example/social-dashboard",
        "liveDemoURL": "https://demo.example.com",
        "featured": False,
    },
]


async def initialize_data(services: Services):
    print("Creating about section...")
    await services.about.update(ABOUT)

    print("Creating skills...")
    for category in SKILLS:
        await services.skills.create(category)

    print("Creating sample projects...")
    for project in PROJECTS:
        await services.projects.create(project)

    print("Data initialization completed successfully!")


async def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    store = build_store(settings)
    try:
        await initialize_data(Services.build(store))
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
