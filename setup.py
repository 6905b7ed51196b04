from setuptools import setup, find_packages

setup(
	name="vr-ingest",
	version="0.1.0",
	description="Dual-port TCP ingestion of sensor velocities and keyboard commands for a real-time VR loop",
	packages=find_packages(include=["vr_ingest", "vr_ingest.*"]),
	python_requires=">=3.10",
	install_requires=[
		"numpy>=1.24.0",
		"PyYAML>=6.0",
	],
	extras_require={
		"dev": [
			"pytest>=7.4.0",
			"hypothesis>=6.80.0",
			"black>=23.0.0",
			"flake8>=6.0.0",
		],
	},
	classifiers=[
		"Development Status :: 3 - Alpha",
		"License :: OSI Approved :: MIT License",
		"Programming Language :: Python :: 3.10",
		"Topic :: System :: Networking",
	],
)
