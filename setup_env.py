#!/usr/bin/env python
"""
Helper script to create the .env file with Stripe, Resend and database settings.
Run this script and follow the prompts.
"""

from pathlib import Path

from django.core.management.utils import get_random_secret_key

KEY_PREFIXES = {
    'STRIPE_PUBLISHABLE_KEY': 'pk_',
    'STRIPE_SECRET_KEY': 'sk_',
    'STRIPE_WEBHOOK_SECRET': 'whsec_',
    'RESEND_API_KEY': 're_',
}

DEFAULTS = {
    'DJANGO_DEBUG': 'True',
    'DB_NAME': '',
    'DB_USER': 'postgres',
    'DB_PASSWORD': '',
    'DB_HOST': 'localhost',
    'DB_PORT': '5432',
    'STRIPE_PUBLISHABLE_KEY': '',
    'STRIPE_SECRET_KEY': '',
    'STRIPE_WEBHOOK_SECRET': '',
    'RESEND_API_KEY': '',
    'SENDER_EMAIL': 'orders@example.com',
    'SITE_URL': 'http://127.0.0.1:8000',
    'DOWNLOAD_LINK_TTL_HOURS': '24',
}

TEMPLATE = """# Django Settings
DJANGO_SECRET_KEY={DJANGO_SECRET_KEY}
DJANGO_DEBUG={DJANGO_DEBUG}

# Database Settings (leave DB_NAME empty to use SQLite)
DB_NAME={DB_NAME}
DB_USER={DB_USER}
DB_PASSWORD={DB_PASSWORD}
DB_HOST={DB_HOST}
DB_PORT={DB_PORT}

# Stripe Settings
# Get these from: https://dashboard.stripe.com/test/apikeys
STRIPE_PUBLISHABLE_KEY={STRIPE_PUBLISHABLE_KEY}
STRIPE_SECRET_KEY={STRIPE_SECRET_KEY}
STRIPE_WEBHOOK_SECRET={STRIPE_WEBHOOK_SECRET}

# Receipt Email (Resend)
RESEND_API_KEY={RESEND_API_KEY}
SENDER_EMAIL={SENDER_EMAIL}

# Download links
SITE_URL={SITE_URL}
DOWNLOAD_LINK_TTL_HOURS={DOWNLOAD_LINK_TTL_HOURS}
"""


def build_env_content(values):
    """Render .env content; returns (content, warnings) for mismatched key prefixes."""
    merged = dict(DEFAULTS)
    merged.update({k: v for k, v in values.items() if v is not None})
    merged.setdefault('DJANGO_SECRET_KEY', get_random_secret_key())

    warnings = []
    for name, prefix in KEY_PREFIXES.items():
        value = merged.get(name)
        if value and not value.startswith(prefix):
            warnings.append(f'{name} should start with {prefix}')

    return TEMPLATE.format(**merged), warnings


def create_env_file(env_path=Path('.env')):
    if env_path.exists():
        response = input('.env file already exists. Overwrite? (y/n): ')
        if response.lower() != 'y':
            print('Cancelled.')
            return

    print('\n=== Digital Storefront - Environment Setup ===\n')
    print('You need your Stripe keys from: https://dashboard.stripe.com/test/apikeys')
    print('and a Resend API key from: https://resend.com/api-keys\n')

    values = {}
    print('Enter your Stripe keys:')
    values['STRIPE_PUBLISHABLE_KEY'] = input('Stripe Publishable Key (pk_test_...): ').strip()
    values['STRIPE_SECRET_KEY'] = input('Stripe Secret Key (sk_test_...): ').strip()
    values['STRIPE_WEBHOOK_SECRET'] = input('Stripe Webhook Secret (whsec_...): ').strip()

    print('\nReceipt email:')
    values['RESEND_API_KEY'] = input('Resend API Key (re_...): ').strip()
    values['SENDER_EMAIL'] = input(f"Sender address [{DEFAULTS['SENDER_EMAIL']}]: ").strip() or None

    print('\nDatabase settings (press Enter for defaults, empty name uses SQLite):')
    values['DB_NAME'] = input('Database name []: ').strip()
    if values['DB_NAME']:
        values['DB_USER'] = input(f"Database user [{DEFAULTS['DB_USER']}]: ").strip() or None
        values['DB_PASSWORD'] = input('Database password: ').strip()
        values['DB_HOST'] = input(f"Database host [{DEFAULTS['DB_HOST']}]: ").strip() or None
        values['DB_PORT'] = input(f"Database port [{DEFAULTS['DB_PORT']}]: ").strip() or None

    content, warnings = build_env_content(values)
    for warning in warnings:
        print(f'WARNING: {warning}')

    env_path.write_text(content)

    print('\n.env file created successfully!')
    print('\nNext steps:')
    print('1. Run: python manage.py migrate')
    print('2. Run: python manage.py createsuperuser')
    print('3. Run: python manage.py runserver')
    print('4. Add products at: http://127.0.0.1:8000/admin/')


if __name__ == '__main__':
    try:
        create_env_file()
    except KeyboardInterrupt:
        print('\n\nCancelled.')
