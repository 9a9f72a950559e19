from setuptools import setup, find_packages

setup(
    name="giftsite",
    version="0.1.0",
    packages=find_packages(include=[
        "giftsite", "giftsite.*",
        "catalog", "catalog.*",
        "orders", "orders.*",
        "delivery", "delivery.*",
        "payments", "payments.*",
    ]),
    include_package_data=True,
    package_data={
        "orders": ["templates/orders/*"],
        "delivery": ["templates/delivery/*"],
        "payments": ["templates/payments/*"],
    },
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14",
        "django-cors-headers>=4.0",
        "whitenoise>=6.5",
        "python-dotenv>=1.0",
        "requests>=2.31",
        "payos>=0.1.8,<1.0",
        "paypal-server-sdk>=1.0,<2",
        "django-anymail[mailgun]>=10.0",
    ],
    extras_require={
        "postgres": ["psycopg[binary]>=3.1"],
        "test": ["pytest>=7.4", "pytest-django>=4.5"],
    },
    author="Wayne",
    author_email="support@techwithwayne.com",
    description="Personalized gift storefront: orders, vouchers, per-order subdomain sites and PayOS/PayPal checkout.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://techwithwayne.com",
    license="MIT",
    classifiers=[
        "Framework :: Django",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License"
    ],
    python_requires='>=3.9',
)
