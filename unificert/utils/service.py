"""
systemd control of the UniFi Controller service
"""


def stop_service(runner, service_name):
    runner.run(['systemctl', 'stop', service_name])


def start_service(runner, service_name):
    runner.run(['systemctl', 'start', service_name])


def is_service_active(runner, service_name):
    """Check if a service is active"""
    result = runner.run(['systemctl', 'is-active', service_name], check=False)
    return result.returncode == 0 and result.stdout.strip() == 'active'
