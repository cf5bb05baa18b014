from setuptools import setup, find_packages

setup(
    name="lawdesk",
    version="0.1",
    py_modules=[
        'app',
        'routes',
        'errors',
        'models',
        'utils',
        'filters',
        'document_service',
        'init_db',
        'seed_data',
    ],
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'flask',
        'python-dotenv',
        'flask-sqlalchemy>=3.0',
        'flask-migrate',
        'flask-login',
        'psycopg2-binary',
        'python-dateutil',
        'requests',
        'werkzeug',
    ],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.9',
)
