import argparse
import os
import sys
from pathlib import Path
from urllib.parse import urlparse

import requests
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / '.env')

errors = []
warnings = []

parser = argparse.ArgumentParser()
parser.add_argument('--strict', '-s', action='store_true', help='Convert warnings to failures')
parser.add_argument('--check', action='store_true', help='Check that configured providers are reachable')
args = parser.parse_args()
STRICT = args.strict

KNOWN_PROVIDERS = ('gemini', 'ollama', 'openai')

# Format checks
try:
    port = int(os.getenv('PORT', '8000'))
    if port < 1 or port > 65535:
        errors.append('PORT must be integer between 1 and 65535')
except ValueError:
    errors.append('PORT must be an integer')

priority = [p.strip().lower() for p in os.getenv('QUIZ_PROVIDER_PRIORITY', 'gemini,ollama').split(',') if p.strip()]
if not priority:
    errors.append('QUIZ_PROVIDER_PRIORITY must name at least one provider')
for name in priority:
    if name not in KNOWN_PROVIDERS:
        warnings.append(f'QUIZ_PROVIDER_PRIORITY: unknown provider {name!r} will be skipped')

for key, low, high in (('QUIZ_MAX_QUESTIONS', 1, 100), ('QUIZ_NOTES_PER_BATCH', 1, 500), ('QUIZ_RETRY_ATTEMPTS', 1, 10)):
    raw = os.getenv(key)
    if raw is None:
        continue
    try:
        value = int(raw)
        if value < low or value > high:
            errors.append(f'{key} must be between {low} and {high}')
    except ValueError:
        errors.append(f'{key} must be an integer')

# Provider credentials
if 'gemini' in priority and not os.getenv('GEMINI_API_KEY'):
    warnings.append('gemini: GEMINI_API_KEY not set; provider will be skipped')

openai_key = os.getenv('OPENAI_API_KEY', '')
if 'openai' in priority:
    if not openai_key:
        warnings.append('openai: OPENAI_API_KEY not set; provider will be skipped')
    elif not openai_key.startswith('sk-'):
        warnings.append('OPENAI_API_KEY does not start with sk-; verify provider')

ollama_url = os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')
if 'ollama' in priority:
    parsed = urlparse(ollama_url)
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        errors.append(f'OLLAMA_BASE_URL is not a valid http(s) URL: {ollama_url}')

try:
    conf = float(os.getenv('OLLAMA_TEMPERATURE', '0.7'))
    if conf < 0.0 or conf > 2.0:
        errors.append('OLLAMA_TEMPERATURE must be between 0.0 and 2.0')
except ValueError:
    errors.append('OLLAMA_TEMPERATURE must be a float')

# Connectivity checks (best effort)
if args.check:
    from notequiz.generation.providers import build_provider

    for name in priority:
        if name not in KNOWN_PROVIDERS:
            continue
        if build_provider(name).check_availability():
            print(f'{name}: reachable')
        else:
            warnings.append(f'{name}: availability check failed')

    if 'ollama' in priority:
        try:
            resp = requests.get(f"{ollama_url.rstrip('/')}/api/tags", timeout=5)
            models = [m.get('name') for m in resp.json().get('models', [])] if resp.ok else []
            wanted = os.getenv('OLLAMA_MODEL', 'llama3.1:8b')
            if models and wanted not in models:
                warnings.append(f'ollama: model {wanted} not pulled (have: {", ".join(models)})')
        except (requests.RequestException, ValueError) as e:
            warnings.append(f'ollama: could not list models: {e}')

log_path = os.getenv('LOG_FILE_PATH', 'logs')
if log_path:
    try:
        Path(log_path).mkdir(parents=True, exist_ok=True)
        if not os.access(log_path, os.W_OK):
            errors.append(f'Log path not writable: {log_path}')
    except OSError as e:
        errors.append(f'Failed to verify/create log dir: {e}')

if errors:
    print('\nENV validation failed:')
    for e in errors:
        print(' -', e)
    sys.exit(1)

if warnings:
    print('\nWarnings:')
    for w in warnings:
        print(' -', w)
    if STRICT:
        print('\nStrict mode enabled: treating warnings as errors')
        sys.exit(1)

print('\nAll critical validations passed')
sys.exit(0)
