# Vulture whitelist: parameters required by callback/protocol signatures
# that vulture incorrectly reports as unused.
#
# Run vulture with: vulture rds_exporter/ vulture_whitelist.py --min-confidence 80

# Signal handler signature (signum, frame)
frame  # unused variable

# ScrapeServer on_failure callback signature
error  # unused variable
