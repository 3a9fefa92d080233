from setuptools import setup, find_namespace_packages
import pathlib

here = pathlib.Path(__file__).parent.resolve()

# Get the long description from the README file
long_description = (here / 'README.md').read_text(encoding='utf-8')

setup(
    name='webtoon-dl',
    version='0.1.0',
    description='Downloads webtoon series episodes into PDF or comic archive files and keeps track of the download progress.',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: End Users/Desktop',
        'License :: OSI Approved :: MIT License',
    ],
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',
    keywords='webtoon, downloader, scraper, pdf, cbz',
    packages=find_namespace_packages(include=['webtoon_dl', 'webtoon_dl.*']),
    python_requires='>=3.10, <4',
    install_requires=[
        'httpx[http2]>=0.27.0',
        'httpx-retries>=0.3.0',
        'beautifulsoup4>=4.12.0',
        'lxml>=5.0.0',
        'furl>=2.1.3',
        'dacite>=1.8.1',
        'aiofiles>=23.2.1',
        'rich>=13.7.0',
        'rich-click>=1.7.0',
        'PyMuPDF>=1.23.0',
        'Pillow>=10.0.0',
        'typing_extensions>=4.9.0',
    ],
    extras_require={
        'test': ['pytest>=8.0.0', 'pytest-asyncio>=0.23.0'],
    },
    entry_points={
        'console_scripts': [
            'webtoon-dl = webtoon_dl.cmd.cli:run',
        ],
    },
)
